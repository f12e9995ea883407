# src/xenrank/runtime/metrics.py
from __future__ import annotations

"""Process-local engine metrics.

The executor reports every envelope outcome here:

  - applied envelopes, per tx type
  - rejected envelopes, per (tx type, error code)
  - invariant violations
  - dashboard gauges after each commit

Served as Prometheus text at /v1/metrics when XENRANK_METRICS_ENABLED is on.
"""

import os
import threading
import time
from typing import Any, Dict, List, Tuple

_lock = threading.Lock()
_applied: Dict[str, int] = {}
_rejected: Dict[Tuple[str, str], int] = {}
_invariant_violations = 0
_gauges: Dict[str, int] = {}
_started_ms = int(time.time() * 1000)

_DASHBOARD_GAUGES = ("global_rank", "active_minters", "active_stakes", "total_xen_staked", "total_supply")


def metrics_enabled() -> bool:
    v = (os.environ.get("XENRANK_METRICS_ENABLED") or "").strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def record_applied(tx_type: str) -> None:
    t = str(tx_type or "").strip().upper() or "UNKNOWN"
    with _lock:
        _applied[t] = _applied.get(t, 0) + 1


def record_rejected(tx_type: str, code: str) -> None:
    key = (str(tx_type or "").strip().upper() or "UNKNOWN", str(code or "rejected"))
    with _lock:
        _rejected[key] = _rejected.get(key, 0) + 1


def record_invariant_violation() -> None:
    global _invariant_violations
    with _lock:
        _invariant_violations += 1


def publish_dashboard(dashboard: Any) -> None:
    """Copy the dashboard counters into gauges."""
    with _lock:
        for name in _DASHBOARD_GAUGES:
            _gauges[name] = int(getattr(dashboard, name, 0) or 0)
        _gauges["burners"] = len(getattr(dashboard, "user_burns", {}) or {})


def reset() -> None:
    """Drop all recorded values (tests)."""
    global _invariant_violations
    with _lock:
        _applied.clear()
        _rejected.clear()
        _gauges.clear()
        _invariant_violations = 0


def snapshot() -> dict:
    now_ms = int(time.time() * 1000)
    with _lock:
        rejected: Dict[str, Dict[str, int]] = {}
        for (t, code), n in _rejected.items():
            rejected.setdefault(t, {})[code] = n
        return {
            "uptime_ms": now_ms - _started_ms,
            "applied": dict(_applied),
            "rejected": rejected,
            "invariant_violations": _invariant_violations,
            "gauges": dict(_gauges),
        }


def format_prometheus(prefix: str = "xenrank_") -> str:
    pre = str(prefix or "").strip() or "xenrank_"
    snap = snapshot()
    lines: List[str] = [f"{pre}uptime_ms {snap['uptime_ms']}"]

    lines.append(f"# TYPE {pre}tx_applied_total counter")
    for t in sorted(snap["applied"]):
        lines.append(f'{pre}tx_applied_total{{tx_type="{t}"}} {snap["applied"][t]}')

    lines.append(f"# TYPE {pre}tx_rejected_total counter")
    for t in sorted(snap["rejected"]):
        for code in sorted(snap["rejected"][t]):
            lines.append(f'{pre}tx_rejected_total{{tx_type="{t}",code="{code}"}} {snap["rejected"][t][code]}')

    lines.append(f"# TYPE {pre}invariant_violations_total counter")
    lines.append(f"{pre}invariant_violations_total {snap['invariant_violations']}")

    for name in sorted(snap["gauges"]):
        lines.append(f"# TYPE {pre}{name} gauge")
        lines.append(f"{pre}{name} {snap['gauges'][name]}")

    return "\n".join(lines) + "\n"
