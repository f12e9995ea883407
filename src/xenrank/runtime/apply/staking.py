# src/xenrank/runtime/apply/staking.py
from __future__ import annotations

"""Stake positions.

Canon:
  STAKE     {amount, term}
  WITHDRAW  {}

Staking burns the principal from the token ledger and takes it out of
total_supply; withdrawal mints principal (+ yield once matured) back.
"""

from typing import Any, Dict, Optional, Set

from xenrank.ledger.constants import XEN_MIN_STAKE
from xenrank.ledger.records import StakeClaim
from xenrank.ledger.rewards import apy, stake_reward
from xenrank.ledger.state import EngineState
from xenrank.runtime.apply.context import (
    ApplyContext,
    as_account,
    as_int,
    check_amount_above,
    check_stake_term,
)
from xenrank.runtime.errors import InsufficientBalance, StakeConflict
from xenrank.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


def stake(state: EngineState, ctx: ApplyContext, account: str, amount: int, term_days: int) -> Json:
    acct = as_account(account)
    amt = check_amount_above(amount, XEN_MIN_STAKE)
    term_s = check_stake_term(term_days)

    if state.open_stake(acct) is not None:
        raise StakeConflict("stake_already_open", {"account": acct})

    balance = ctx.balance_of(acct)
    if balance < amt:
        raise InsufficientBalance("insufficient_funds", {"balance": balance, "amount": amt})

    dash = state.dashboard
    now = int(ctx.now_s)

    position = StakeClaim(
        owner=acct,
        term=int(term_days),
        maturity_ts=now + term_s,
        amount=amt,
        apy=apy(now, dash.genesis_ts),
    )

    ctx.burn_from(acct, amt)
    dash.reduce_supply(amt)
    state.stakes[acct] = position
    dash.open_stake(amt)

    return {"applied": "STAKE", "account": acct, "stake": position.to_json()}


def withdraw(state: EngineState, ctx: ApplyContext, account: str) -> Json:
    acct = as_account(account)
    position = state.stakes.get(acct)
    if position is None:
        raise StakeConflict("no_stake_position", {"account": acct})
    if not position.is_open:
        raise StakeConflict("position_already_empty", {"account": acct})

    now = int(ctx.now_s)
    payout = stake_reward(position.amount, position.term, now, position.maturity_ts, position.apy)
    matured = now >= int(position.maturity_ts)

    principal = position.close()
    state.dashboard.close_stake(principal)
    state.dashboard.record_supply(payout)

    ctx.mint_to(acct, payout)

    return {
        "applied": "WITHDRAW",
        "account": acct,
        "principal": int(principal),
        "reward": int(payout - principal),
        "payout": int(payout),
        "matured": bool(matured),
    }


def _apply_stake(state: EngineState, env: TxEnvelope, ctx: ApplyContext) -> Json:
    amount = as_int(env.payload.get("amount"), field="amount")
    term = as_int(env.payload.get("term"), field="term")
    return stake(state, ctx, env.signer, amount, term)


def _apply_withdraw(state: EngineState, env: TxEnvelope, ctx: ApplyContext) -> Json:
    return withdraw(state, ctx, env.signer)


STAKE_TX_TYPES: Set[str] = {"STAKE", "WITHDRAW"}


def apply_staking(state: EngineState, env: TxEnvelope, ctx: ApplyContext) -> Optional[Json]:
    t = str(env.tx_type).strip().upper()
    if t not in STAKE_TX_TYPES:
        return None

    if t == "STAKE":
        return _apply_stake(state, env, ctx)

    if t == "WITHDRAW":
        return _apply_withdraw(state, env, ctx)

    return None


__all__ = ["STAKE_TX_TYPES", "apply_staking", "stake", "withdraw"]
