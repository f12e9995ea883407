from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ApplyError(Exception):
    """Canonical error type for entry-operation and dispatch failures.

    Raised before any state is mutated; the executor turns it into a
    rejected receipt.
    """

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


class _KindError(ApplyError):
    CODE = "apply_error"

    def __init__(self, reason: str, details: Any | None = None) -> None:
        super().__init__(self.CODE, reason, details)


class InvalidTerm(_KindError):
    CODE = "invalid_term"


class ClaimConflict(_KindError):
    CODE = "claim_conflict"


class StakeConflict(_KindError):
    CODE = "stake_conflict"


class MaturityNotReached(_KindError):
    CODE = "maturity_not_reached"


class PercentOutOfRange(_KindError):
    CODE = "percent_out_of_range"


class InsufficientBalance(_KindError):
    CODE = "insufficient_balance"


class SupplyExhausted(_KindError):
    CODE = "supply_exhausted"


class InvalidAmount(_KindError):
    CODE = "invalid_amount"


class InvalidPayload(_KindError):
    CODE = "invalid_payload"


class InvariantViolation(RuntimeError):
    """A counter underflow or capability misuse: a logic bug, never a user error.

    Not an ApplyError; the executor re-raises it instead of writing a receipt.
    """


__all__ = [
    "ApplyError",
    "ClaimConflict",
    "InsufficientBalance",
    "InvalidAmount",
    "InvalidPayload",
    "InvalidTerm",
    "InvariantViolation",
    "MaturityNotReached",
    "PercentOutOfRange",
    "StakeConflict",
    "SupplyExhausted",
]
