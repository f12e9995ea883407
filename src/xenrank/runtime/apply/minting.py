# src/xenrank/runtime/apply/minting.py
from __future__ import annotations

"""Rank claims: open a claim, let it mature, settle it.

Canon:
  CLAIM_RANK               {term}
  CLAIM_MINT_REWARD        {}
  CLAIM_MINT_REWARD_STAKE  {pct, term}

A claim is Open while term > 0. Settlement zeroes the term and leaves the
record as a tombstone until the account's next CLAIM_RANK replaces it.
"""

from typing import Any, Dict, Optional, Set

from xenrank.ledger.constants import MAX_MINT_SUPPLY, XEN_MIN_STAKE
from xenrank.ledger.records import MintClaim, StakeClaim
from xenrank.ledger.rewards import (
    apy,
    eaa_rate,
    mint_reward_units,
    net_mint_reward,
    reserve_share,
    reward_amplifier,
)
from xenrank.ledger.state import EngineState
from xenrank.runtime.apply.context import (
    ApplyContext,
    as_account,
    as_int,
    check_mint_term,
    check_stake_term,
)
from xenrank.runtime.errors import (
    ClaimConflict,
    MaturityNotReached,
    PercentOutOfRange,
    StakeConflict,
    SupplyExhausted,
)
from xenrank.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


def _require_matured_claim(state: EngineState, account: str, now_s: int) -> MintClaim:
    claim = state.open_mint(account)
    if claim is None:
        raise ClaimConflict("no_open_claim", {"account": account})
    if int(now_s) < int(claim.maturity_ts):
        raise MaturityNotReached(
            "not_matured",
            {"account": account, "maturity_ts": int(claim.maturity_ts), "now": int(now_s)},
        )
    return claim


def _claim_reward_tokens(state: EngineState, claim: MintClaim, now_s: int) -> int:
    return net_mint_reward(
        state.dashboard.global_rank,
        claim.rank,
        claim.term,
        int(now_s),
        claim.maturity_ts,
        claim.amplifier,
        claim.eaa_rate,
    )


def claim_rank(state: EngineState, ctx: ApplyContext, account: str, term_days: int) -> Json:
    acct = as_account(account)
    dash = state.dashboard

    if state.open_mint(acct) is not None:
        raise ClaimConflict("claim_already_open", {"account": acct})

    term_s = check_mint_term(term_days, dash.global_rank)

    if int(dash.total_supply) >= MAX_MINT_SUPPLY:
        raise SupplyExhausted(
            "max_mint_supply_reached",
            {"total_supply": int(dash.total_supply), "max_mint_supply": MAX_MINT_SUPPLY},
        )

    now = int(ctx.now_s)
    elapsed = max(now - int(dash.genesis_ts), 0)
    amplifier = reward_amplifier(elapsed, ctx.minted_supply())
    eaa = eaa_rate(dash.global_rank)

    rank = dash.open_minter()
    claim = MintClaim(
        owner=acct,
        term=int(term_days),
        maturity_ts=now + term_s,
        rank=rank,
        amplifier=amplifier,
        eaa_rate=eaa,
    )
    state.mints[acct] = claim

    return {"applied": "CLAIM_RANK", "account": acct, "claim": claim.to_json()}


def claim_mint_reward(state: EngineState, ctx: ApplyContext, account: str) -> Json:
    acct = as_account(account)
    claim = _require_matured_claim(state, acct, ctx.now_s)

    reward = _claim_reward_tokens(state, claim, ctx.now_s)
    minted = mint_reward_units(reward)
    reserve = reserve_share(minted)

    claim.settle()
    state.dashboard.close_minter()
    state.dashboard.record_supply(minted + reserve)

    ctx.mint_to(acct, minted)
    ctx.mint_to(ctx.treasury_account, reserve)

    return {
        "applied": "CLAIM_MINT_REWARD",
        "account": acct,
        "reward_tokens": int(reward),
        "minted": int(minted),
        "reserve": int(reserve),
    }


def claim_mint_reward_stake(
    state: EngineState,
    ctx: ApplyContext,
    account: str,
    pct: int,
    term_days: int,
) -> Json:
    """Settle a matured claim, paying out (100 - pct)% and staking pct% for term_days."""
    acct = as_account(account)
    claim = _require_matured_claim(state, acct, ctx.now_s)

    p = int(pct)
    if p < 0 or p > 100:
        raise PercentOutOfRange("pct_out_of_range", {"pct": p})

    if state.open_stake(acct) is not None:
        raise StakeConflict("stake_already_open", {"account": acct})
    term_s = check_stake_term(term_days)

    reward = _claim_reward_tokens(state, claim, ctx.now_s)
    minted = mint_reward_units(reward)
    staked = (minted * p) // 100
    own = minted - staked
    reserve = reserve_share(minted)

    dash = state.dashboard
    now = int(ctx.now_s)

    claim.settle()
    dash.close_minter()
    dash.record_supply(own + reserve)

    # a zero share (pct 0, or a fully decayed reward) opens no position
    position: Optional[StakeClaim] = None
    if staked > XEN_MIN_STAKE:
        position = StakeClaim(
            owner=acct,
            term=int(term_days),
            maturity_ts=now + term_s,
            amount=staked,
            apy=apy(now, dash.genesis_ts),
        )
        state.stakes[acct] = position
        dash.open_stake(staked)

    ctx.mint_to(acct, own)
    ctx.mint_to(ctx.treasury_account, reserve)

    return {
        "applied": "CLAIM_MINT_REWARD_STAKE",
        "account": acct,
        "reward_tokens": int(reward),
        "minted": int(own),
        "staked": int(staked),
        "reserve": int(reserve),
        "stake": position.to_json() if position is not None else None,
    }


def _apply_claim_rank(state: EngineState, env: TxEnvelope, ctx: ApplyContext) -> Json:
    term = as_int(env.payload.get("term"), field="term")
    return claim_rank(state, ctx, env.signer, term)


def _apply_claim_mint_reward(state: EngineState, env: TxEnvelope, ctx: ApplyContext) -> Json:
    return claim_mint_reward(state, ctx, env.signer)


def _apply_claim_mint_reward_stake(state: EngineState, env: TxEnvelope, ctx: ApplyContext) -> Json:
    pct = as_int(env.payload.get("pct"), field="pct")
    term = as_int(env.payload.get("term"), field="term")
    return claim_mint_reward_stake(state, ctx, env.signer, pct, term)


MINT_TX_TYPES: Set[str] = {
    "CLAIM_RANK",
    "CLAIM_MINT_REWARD",
    "CLAIM_MINT_REWARD_STAKE",
}


def apply_minting(state: EngineState, env: TxEnvelope, ctx: ApplyContext) -> Optional[Json]:
    """
    Returns:
      - dict: applied result (receipt)
      - None: tx_type not in the minting domain
    """
    t = str(env.tx_type).strip().upper()
    if t not in MINT_TX_TYPES:
        return None

    if t == "CLAIM_RANK":
        return _apply_claim_rank(state, env, ctx)

    if t == "CLAIM_MINT_REWARD":
        return _apply_claim_mint_reward(state, env, ctx)

    if t == "CLAIM_MINT_REWARD_STAKE":
        return _apply_claim_mint_reward_stake(state, env, ctx)

    return None


__all__ = [
    "MINT_TX_TYPES",
    "apply_minting",
    "claim_mint_reward",
    "claim_mint_reward_stake",
    "claim_rank",
]
