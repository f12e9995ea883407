# src/xenrank/runtime/apply/__init__.py
"""Domain-specific apply modules.

Each module implements deterministic EngineState transitions for a subset of
tx types and exposes an apply_<domain>(state, env, ctx) entry point that
returns None for tx types it does not own.
"""

from __future__ import annotations

__all__ = [
    "burns",
    "context",
    "minting",
    "staking",
]
