# src/xenrank/ledger/dashboard.py
from __future__ import annotations

"""Global emission counters.

One Dashboard exists per engine and is passed explicitly to every entry
operation (it lives on EngineState). Only the minting, staking and burn
appliers mutate it; the reward rules read it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from xenrank.runtime.errors import InvariantViolation

Json = Dict[str, Any]


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _positive(name: str, amount: int) -> int:
    a = int(amount)
    if a < 0:
        raise InvariantViolation(f"{name}: negative amount {a}")
    return a


@dataclass
class Dashboard:
    genesis_ts: int
    global_rank: int = 0
    active_minters: int = 0
    active_stakes: int = 0
    total_xen_staked: int = 0
    total_supply: int = 0
    user_burns: Dict[str, int] = field(default_factory=dict)

    # ---- minters ----

    def open_minter(self) -> int:
        """Count a new claim; returns the rank to snapshot (value before increment)."""
        rank = int(self.global_rank)
        self.active_minters += 1
        self.global_rank = rank + 1
        return rank

    def close_minter(self) -> None:
        if self.active_minters <= 0:
            raise InvariantViolation("close_minter: active_minters underflow")
        self.active_minters -= 1

    # ---- stakes ----

    def open_stake(self, amount: int) -> None:
        a = _positive("open_stake", amount)
        self.active_stakes += 1
        self.total_xen_staked += a

    def close_stake(self, amount: int) -> None:
        a = _positive("close_stake", amount)
        if self.active_stakes <= 0:
            raise InvariantViolation("close_stake: active_stakes underflow")
        if self.total_xen_staked < a:
            raise InvariantViolation(
                f"close_stake: total_xen_staked underflow ({self.total_xen_staked} < {a})"
            )
        self.active_stakes -= 1
        self.total_xen_staked -= a

    # ---- supply / burns ----

    def record_supply(self, delta: int) -> None:
        self.total_supply += _positive("record_supply", delta)

    def reduce_supply(self, delta: int) -> int:
        """Lower total_supply by delta, floored at zero. Returns the amount removed."""
        d = min(_positive("reduce_supply", delta), self.total_supply)
        self.total_supply -= d
        return d

    def record_burn(self, account: str, amount: int) -> int:
        a = _positive("record_burn", amount)
        total = int(self.user_burns.get(account, 0)) + a
        self.user_burns[account] = total
        return total

    # ---- JSON interop ----

    def to_json(self) -> Json:
        return {
            "genesis_ts": int(self.genesis_ts),
            "global_rank": int(self.global_rank),
            "active_minters": int(self.active_minters),
            "active_stakes": int(self.active_stakes),
            "total_xen_staked": int(self.total_xen_staked),
            "total_supply": int(self.total_supply),
            "user_burns": {str(k): int(v) for k, v in sorted(self.user_burns.items())},
        }

    @classmethod
    def from_json(cls, j: Any) -> "Dashboard":
        d = j if isinstance(j, dict) else {}
        burns = d.get("user_burns")
        return cls(
            genesis_ts=_as_int(d.get("genesis_ts"), 0),
            global_rank=_as_int(d.get("global_rank"), 0),
            active_minters=_as_int(d.get("active_minters"), 0),
            active_stakes=_as_int(d.get("active_stakes"), 0),
            total_xen_staked=_as_int(d.get("total_xen_staked"), 0),
            total_supply=_as_int(d.get("total_supply"), 0),
            user_burns={str(k): _as_int(v, 0) for k, v in burns.items()} if isinstance(burns, dict) else {},
        )


__all__ = ["Dashboard"]
