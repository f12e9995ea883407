# src/xenrank/runtime/quotes.py
from __future__ import annotations

"""Read-only views: what settlement would pay right now, and the current
emission parameters a new claim or stake would snapshot. Nothing here mutates
state."""

from typing import Any, Dict, Optional

from xenrank.ledger.constants import SECONDS_IN_DAY
from xenrank.ledger.rewards import (
    apy,
    eaa_rate,
    max_term,
    mint_reward_units,
    net_mint_reward,
    reserve_share,
    reward_amplifier,
    stake_reward,
    withdrawal_penalty,
)
from xenrank.ledger.state import EngineState

Json = Dict[str, Any]


def current_params(state: EngineState, now_s: int, minted_supply: int) -> Json:
    dash = state.dashboard
    elapsed = max(int(now_s) - int(dash.genesis_ts), 0)
    mt = max_term(dash.global_rank)
    return {
        "now": int(now_s),
        "global_rank": int(dash.global_rank),
        "amplifier": reward_amplifier(elapsed, max(int(minted_supply), 0)),
        "eaa_rate": eaa_rate(dash.global_rank),
        "apy": apy(int(now_s), dash.genesis_ts),
        "max_term_days": mt // SECONDS_IN_DAY,
    }


def quote_mint_reward(state: EngineState, account: str, now_s: int) -> Optional[Json]:
    """None when the account has no open claim."""
    claim = state.open_mint(account)
    if claim is None:
        return None

    now = int(now_s)
    matured = now >= int(claim.maturity_ts)
    # before maturity, quote as if settled exactly at maturity
    at = now if matured else int(claim.maturity_ts)
    reward = net_mint_reward(
        state.dashboard.global_rank,
        claim.rank,
        claim.term,
        at,
        claim.maturity_ts,
        claim.amplifier,
        claim.eaa_rate,
    )
    minted = mint_reward_units(reward)
    return {
        "account": account,
        "matured": matured,
        "maturity_ts": int(claim.maturity_ts),
        "penalty_pct": withdrawal_penalty(at - int(claim.maturity_ts)),
        "reward_tokens": int(reward),
        "minted": int(minted),
        "reserve": int(reserve_share(minted)),
    }


def quote_stake_reward(state: EngineState, account: str, now_s: int) -> Optional[Json]:
    """None when the account has no open stake."""
    position = state.open_stake(account)
    if position is None:
        return None

    now = int(now_s)
    payout = stake_reward(position.amount, position.term, now, position.maturity_ts, position.apy)
    return {
        "account": account,
        "matured": now >= int(position.maturity_ts),
        "maturity_ts": int(position.maturity_ts),
        "principal": int(position.amount),
        "payout": int(payout),
    }


__all__ = ["current_params", "quote_mint_reward", "quote_stake_reward"]
