from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from xenrank.ledger.dashboard import Dashboard
from xenrank.ledger.records import MintClaim, StakeClaim

Json = Dict[str, Any]


@dataclass
class EngineState:
    """
    Everything the engine owns: the dashboard plus per-account records.

    Balances are not here; they belong to the external token ledger.
    """

    dashboard: Dashboard
    mints: Dict[str, MintClaim] = field(default_factory=dict)
    stakes: Dict[str, StakeClaim] = field(default_factory=dict)

    @classmethod
    def genesis(cls, genesis_ts: int) -> "EngineState":
        return cls(dashboard=Dashboard(genesis_ts=int(genesis_ts)))

    def open_mint(self, account: str) -> Optional[MintClaim]:
        rec = self.mints.get(account)
        return rec if rec is not None and rec.is_open else None

    def open_stake(self, account: str) -> Optional[StakeClaim]:
        rec = self.stakes.get(account)
        return rec if rec is not None and rec.is_open else None

    def clone(self) -> "EngineState":
        return copy.deepcopy(self)

    def to_json(self) -> Json:
        return {
            "dashboard": self.dashboard.to_json(),
            "mints": {k: v.to_json() for k, v in sorted(self.mints.items())},
            "stakes": {k: v.to_json() for k, v in sorted(self.stakes.items())},
        }

    @classmethod
    def from_json(cls, j: Any) -> "EngineState":
        d = j if isinstance(j, dict) else {}
        mints = d.get("mints") if isinstance(d.get("mints"), dict) else {}
        stakes = d.get("stakes") if isinstance(d.get("stakes"), dict) else {}
        return cls(
            dashboard=Dashboard.from_json(d.get("dashboard")),
            mints={str(k): MintClaim.from_json(v) for k, v in mints.items()},
            stakes={str(k): StakeClaim.from_json(v) for k, v in stakes.items()},
        )


__all__ = ["EngineState"]
