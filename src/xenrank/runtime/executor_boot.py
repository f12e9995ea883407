# src/xenrank/runtime/executor_boot.py

from __future__ import annotations

from typing import Optional

from xenrank.ledger.token import InMemoryTokenLedger
from xenrank.runtime.clock import Clock, SystemClock
from xenrank.runtime.engine_config import EngineConfig, load_engine_config
from xenrank.runtime.executor import XenExecutor


def build_executor(cfg: Optional[EngineConfig] = None, *, clock: Optional[Clock] = None) -> XenExecutor:
    """
    Build a XenExecutor backed by the in-memory token ledger, from an explicit
    config or, if omitted, from XENRANK_CONFIG_PATH / XENRANK_* env vars.
    """
    c = cfg or load_engine_config()

    token = InMemoryTokenLedger()
    token.register(c.treasury_account)
    for acct, amount in sorted(c.initial_balances.items()):
        token.credit(acct, int(amount))

    return XenExecutor(
        token=token,
        clock=clock or SystemClock(),
        engine_id=c.engine_id,
        treasury_account=c.treasury_account,
        genesis_ts=c.genesis_ts or None,
    )
