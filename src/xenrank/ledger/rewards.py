# src/xenrank/ledger/rewards.py
from __future__ import annotations

"""Pure reward, penalty and decay rules.

Every function here is integer-only and side-effect free. Divisions truncate
and are applied in the order written.
"""

from dataclasses import dataclass
from typing import Any, Dict

from xenrank.ledger.constants import (
    AMPLIFIER_END,
    AMPLIFIER_START,
    APY_DAYS_STEP,
    APY_DENOM,
    APY_END,
    APY_START,
    APY_STEP,
    DAYS_IN_YEAR,
    EAA_DENOM,
    EAA_PM_STEP,
    EAA_RANK_STEP,
    EAA_START,
    MAX_PENALTY_PCT,
    MAX_REWARD_CLAIM,
    MAX_TERM_END,
    MAX_TERM_START,
    RESERVE_PCT,
    SECONDS_IN_DAY,
    SUPPLY_UNIT,
    TERM_AMPLIFIER,
    TERM_AMPLIFIER_THRESHOLD,
    TOKEN_UNIT,
    WITHDRAWAL_WINDOW_DAYS,
)

Json = Dict[str, Any]


@dataclass
class RewardError(ValueError):
    code: str
    reason: str
    details: Json

    def __str__(self) -> str:
        return f"{self.code}:{self.reason}:{self.details}"


def _uint(name: str, v: Any) -> int:
    # bool is an int subclass; it is never a valid amount
    if isinstance(v, bool) or not isinstance(v, int):
        raise RewardError("invalid_input", "not_an_integer", {"field": name, "type": type(v).__name__})
    if v < 0:
        raise RewardError("invalid_input", "negative_value", {"field": name, "value": v})
    return v


def log2_floor(x: int) -> int:
    """Floor of log2(x), never below 1 (x <= 2 yields 1)."""
    v = _uint("x", x)
    if v <= 2:
        return 1
    return v.bit_length() - 1


def reward_amplifier(elapsed_seconds: int, current_supply: int) -> int:
    """Reward amplifier after time decay and supply decay, whichever is lower.

    Time decay: AMPLIFIER_START - elapsed days.
    Supply decay: AMPLIFIER_START - supply // SUPPLY_UNIT.
    Both are floored at AMPLIFIER_END.
    """
    days = _uint("elapsed_seconds", elapsed_seconds) // SECONDS_IN_DAY
    supply_steps = _uint("current_supply", current_supply) // SUPPLY_UNIT

    by_time = AMPLIFIER_START - days if days < AMPLIFIER_START else AMPLIFIER_END
    by_supply = AMPLIFIER_START - supply_steps if supply_steps < AMPLIFIER_START else AMPLIFIER_END

    return min(max(by_time, AMPLIFIER_END), max(by_supply, AMPLIFIER_END))


def eaa_rate(global_rank: int) -> int:
    """Early adopter amplifier in per-mille; decays with rank, floored at 0."""
    decrease = (EAA_PM_STEP * _uint("global_rank", global_rank)) // EAA_RANK_STEP
    if decrease > EAA_START:
        return 0
    return EAA_START - decrease


def apy(now_ts: int, genesis_ts: int) -> int:
    """Stake APY (per-mille) offered to positions opened at now_ts."""
    now = _uint("now_ts", now_ts)
    genesis = _uint("genesis_ts", genesis_ts)
    # a clock behind genesis counts as genesis
    elapsed = now - genesis if now > genesis else 0
    steps = elapsed // (SECONDS_IN_DAY * APY_DAYS_STEP)
    decrease = steps * APY_STEP
    if decrease > APY_START - APY_END:
        return APY_END
    return APY_START - decrease


def max_term(global_rank: int) -> int:
    """Longest allowed term in seconds for the given global rank."""
    rank = _uint("global_rank", global_rank)
    if rank > TERM_AMPLIFIER_THRESHOLD:
        delta = log2_floor(rank) * TERM_AMPLIFIER
        return min(MAX_TERM_START + delta * SECONDS_IN_DAY, MAX_TERM_END)
    return MAX_TERM_START


def withdrawal_penalty(seconds_late: int) -> int:
    """Percent [0, 99] withheld from a mint reward settled seconds_late after maturity."""
    if isinstance(seconds_late, bool) or not isinstance(seconds_late, int):
        raise RewardError("invalid_input", "not_an_integer", {"field": "seconds_late"})
    if seconds_late <= 0:
        return 0
    days_late = seconds_late // SECONDS_IN_DAY
    if days_late > WITHDRAWAL_WINDOW_DAYS - 1:
        return MAX_PENALTY_PCT
    penalty = (1 << (days_late + 3)) // WITHDRAWAL_WINDOW_DAYS - 1
    return min(penalty, MAX_PENALTY_PCT)


def gross_mint_reward(rank_delta: int, amplifier: int, term: int, eaa: int) -> int:
    """log2(rank_delta) * amplifier * term * eaa, with rank_delta floored at 2.

    eaa is the per-mille multiplier 1000 + eaa_rate, so the result is still
    scaled by EAA_DENOM.
    """
    delta = max(_uint("rank_delta", rank_delta), 2)
    return log2_floor(delta) * _uint("amplifier", amplifier) * _uint("term", term) * _uint("eaa", eaa)


def net_mint_reward(
    global_rank: int,
    claim_rank: int,
    term: int,
    now_ts: int,
    maturity_ts: int,
    amplifier: int,
    eaa_rate: int,
) -> int:
    """Whole-token reward for settling a claim at now_ts.

    Order: gross -> cap at MAX_REWARD_CLAIM -> late penalty haircut -> EAA scaling.
    """
    gr = _uint("global_rank", global_rank)
    cr = _uint("claim_rank", claim_rank)
    rank_delta = max(gr - cr, 2)

    gross = gross_mint_reward(rank_delta, amplifier, term, EAA_DENOM + _uint("eaa_rate", eaa_rate))
    gross = min(gross, MAX_REWARD_CLAIM)

    penalty = withdrawal_penalty(_uint("now_ts", now_ts) - _uint("maturity_ts", maturity_ts))
    after_penalty = (gross * (100 - penalty)) // 100
    return after_penalty // EAA_DENOM


def stake_reward(amount: int, term_days: int, now_ts: int, maturity_ts: int, apy: int) -> int:
    """Principal plus yield once matured; principal alone before maturity."""
    principal = _uint("amount", amount)
    if _uint("now_ts", now_ts) >= _uint("maturity_ts", maturity_ts):
        yield_ = (principal * _uint("apy", apy) * _uint("term_days", term_days)) // (APY_DENOM * DAYS_IN_YEAR)
        return principal + yield_
    return principal


def mint_reward_units(reward_tokens: int) -> int:
    """Convert a whole-token reward into ledger base units."""
    return _uint("reward_tokens", reward_tokens) * TOKEN_UNIT


def reserve_share(amount: int) -> int:
    """Protocol reserve minted alongside a mint settlement."""
    return (_uint("amount", amount) * RESERVE_PCT) // 100


__all__ = [
    "RewardError",
    "apy",
    "eaa_rate",
    "gross_mint_reward",
    "log2_floor",
    "max_term",
    "mint_reward_units",
    "net_mint_reward",
    "reserve_share",
    "reward_amplifier",
    "stake_reward",
    "withdrawal_penalty",
]
