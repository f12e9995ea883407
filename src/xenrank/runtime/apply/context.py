# src/xenrank/runtime/apply/context.py
from __future__ import annotations

"""Shared plumbing for the apply modules: the per-call context handed to every
entry operation, term/amount validation, and payload coercion."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from xenrank.ledger.constants import (
    MAX_TERM_END,
    MIN_TERM,
    SECONDS_IN_DAY,
    TREASURY_ACCOUNT_ID,
)
from xenrank.ledger.rewards import max_term
from xenrank.ledger.token import MintBurnAuthority, TokenLedger
from xenrank.runtime.errors import InvalidAmount, InvalidPayload, InvalidTerm

Json = Dict[str, Any]


@dataclass
class ApplyContext:
    """Per-envelope handle on the token ledger.

    With defer_token_effects=True, mint_to/burn_from only queue the ledger
    call; flush_token_effects() performs them once the new state is committed.
    """

    token: TokenLedger
    authority: MintBurnAuthority
    now_s: int
    treasury_account: str = TREASURY_ACCOUNT_ID
    defer_token_effects: bool = False
    pending: List[Tuple[str, str, int]] = field(default_factory=list)

    def minted_supply(self) -> int:
        """Circulating supply as reported by the token ledger; unknown counts as 0."""
        v = self.token.total_minted_supply()
        return int(v) if v is not None and int(v) > 0 else 0

    def balance_of(self, account: str) -> int:
        return int(self.token.balance_of(account))

    def mint_to(self, account: str, amount: int) -> None:
        if int(amount) <= 0:
            return
        self._effect("mint", account, int(amount))

    def burn_from(self, account: str, amount: int) -> None:
        self._effect("burn", account, int(amount))

    def flush_token_effects(self) -> int:
        """Run queued ledger calls in order; returns how many ran."""
        ops, self.pending = self.pending, []
        for op, account, amount in ops:
            self._run(op, account, amount)
        return len(ops)

    def _effect(self, op: str, account: str, amount: int) -> None:
        if self.defer_token_effects:
            self.pending.append((op, account, amount))
        else:
            self._run(op, account, amount)

    def _run(self, op: str, account: str, amount: int) -> None:
        if op == "mint":
            if not self.token.is_registered(account):
                self.token.register(account)
            self.token.mint(self.authority, account, amount)
        else:
            self.token.burn_from(self.authority, account, amount)


def as_account(v: Any) -> str:
    s = str(v).strip() if isinstance(v, (str, int)) and not isinstance(v, bool) else ""
    if not s:
        raise InvalidPayload("missing_account", {"account": v})
    return s


def as_int(v: Any, *, field: str) -> int:
    """Coerce a payload field to int; bools and non-integral values are rejected."""
    if isinstance(v, bool) or v is None:
        raise InvalidPayload(f"bad_{field}", {field: v})
    if isinstance(v, float):
        if not v.is_integer():
            raise InvalidPayload(f"bad_{field}", {field: v})
        v = int(v)
    try:
        return int(v)
    except Exception:
        raise InvalidPayload(f"bad_{field}", {field: v})


def check_min_term(term_days: int) -> int:
    term_s = int(term_days) * SECONDS_IN_DAY
    if term_s <= MIN_TERM:
        raise InvalidTerm("term_too_short", {"term": int(term_days), "min_term_s": MIN_TERM + 1})
    return term_s


def check_mint_term(term_days: int, global_rank: int) -> int:
    """Validate a rank-claim term; returns it in seconds."""
    term_s = check_min_term(term_days)
    cap = max_term(global_rank)
    if term_s > cap:
        raise InvalidTerm("term_too_long", {"term": int(term_days), "max_term_days": cap // SECONDS_IN_DAY})
    return term_s


def check_stake_term(term_days: int) -> int:
    """Validate a stake term; stakes are bounded by MAX_TERM_END regardless of rank."""
    term_s = check_min_term(term_days)
    if term_s > MAX_TERM_END:
        raise InvalidTerm(
            "term_too_long",
            {"term": int(term_days), "max_term_days": MAX_TERM_END // SECONDS_IN_DAY},
        )
    return term_s


def check_amount_above(amount: int, minimum: int, *, field: str = "amount") -> int:
    a = int(amount)
    if a <= int(minimum):
        raise InvalidAmount("amount_too_small", {field: a, "min_exclusive": int(minimum)})
    return a


__all__ = [
    "ApplyContext",
    "as_account",
    "as_int",
    "check_amount_above",
    "check_mint_term",
    "check_stake_term",
]
