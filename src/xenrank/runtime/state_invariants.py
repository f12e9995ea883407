# src/xenrank/runtime/state_invariants.py
from __future__ import annotations

"""Cross-record invariants of EngineState.

The appliers keep these true by construction. The executor re-checks them
after every committed envelope; a failure means a logic bug, so it raises
InvariantViolation rather than producing a receipt.
"""

from typing import Any

from xenrank.ledger.state import EngineState
from xenrank.runtime.errors import InvariantViolation


def check_state(st: Any) -> EngineState:
    """Verify dashboard counters agree with the per-account records.

    Returns the state unchanged.

    Raises:
        TypeError: if st is not an EngineState
        InvariantViolation: if a counter disagrees with the records
    """
    if not isinstance(st, EngineState):
        raise TypeError(f"state must be EngineState, got {type(st)}")

    dash = st.dashboard
    open_stakes = [s for s in st.stakes.values() if s.is_open]
    staked = sum(int(s.amount) for s in open_stakes)
    if staked != int(dash.total_xen_staked):
        raise InvariantViolation(f"total_xen_staked={dash.total_xen_staked} but open stakes hold {staked}")
    if len(open_stakes) != int(dash.active_stakes):
        raise InvariantViolation(f"active_stakes={dash.active_stakes} but {len(open_stakes)} positions are open")

    open_mints = sum(1 for m in st.mints.values() if m.is_open)
    if open_mints != int(dash.active_minters):
        raise InvariantViolation(f"active_minters={dash.active_minters} but {open_mints} claims are open")

    if int(dash.global_rank) < open_mints:
        raise InvariantViolation(f"global_rank={dash.global_rank} below open claims {open_mints}")

    return st


__all__ = ["check_state"]
