"""xenrank.ledger.records

Per-account position records.

  - MintClaim: one outstanding rank claim per account
  - StakeClaim: one staking position per account

A MintClaim with term == 0 is a settled tombstone; a StakeClaim with
amount == 0 is an empty (withdrawn) position. Both are replaced, never
reopened in place, when the account starts a new position.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

Json = Dict[str, Any]


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


@dataclass
class MintClaim:
    owner: str
    term: int
    maturity_ts: int
    rank: int
    amplifier: int
    eaa_rate: int

    @property
    def is_open(self) -> bool:
        return int(self.term) > 0

    def settle(self) -> None:
        self.term = 0

    def to_json(self) -> Json:
        return {
            "owner": self.owner,
            "term": int(self.term),
            "maturity_ts": int(self.maturity_ts),
            "rank": int(self.rank),
            "amplifier": int(self.amplifier),
            "eaa_rate": int(self.eaa_rate),
            "status": "open" if self.is_open else "settled",
        }

    @staticmethod
    def from_json(j: Any) -> "MintClaim":
        d = j if isinstance(j, dict) else {}
        return MintClaim(
            owner=str(d.get("owner", "")),
            term=_as_int(d.get("term")),
            maturity_ts=_as_int(d.get("maturity_ts")),
            rank=_as_int(d.get("rank")),
            amplifier=_as_int(d.get("amplifier")),
            eaa_rate=_as_int(d.get("eaa_rate")),
        )


@dataclass
class StakeClaim:
    owner: str
    term: int
    maturity_ts: int
    amount: int
    apy: int

    @property
    def is_open(self) -> bool:
        return int(self.amount) > 0

    def close(self) -> int:
        """Empty the position and return the principal it held."""
        principal = int(self.amount)
        self.amount = 0
        return principal

    def to_json(self) -> Json:
        return {
            "owner": self.owner,
            "term": int(self.term),
            "maturity_ts": int(self.maturity_ts),
            "amount": int(self.amount),
            "apy": int(self.apy),
            "status": "open" if self.is_open else "empty",
        }

    @staticmethod
    def from_json(j: Any) -> "StakeClaim":
        d = j if isinstance(j, dict) else {}
        return StakeClaim(
            owner=str(d.get("owner", "")),
            term=_as_int(d.get("term")),
            maturity_ts=_as_int(d.get("maturity_ts")),
            amount=_as_int(d.get("amount")),
            apy=_as_int(d.get("apy")),
        )


__all__ = ["MintClaim", "StakeClaim"]
