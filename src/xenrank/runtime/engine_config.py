# src/xenrank/runtime/engine_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from xenrank.ledger.constants import TREASURY_ACCOUNT_ID

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_balances(v: Any) -> Dict[str, int]:
    if not isinstance(v, dict):
        return {}
    out: Dict[str, int] = {}
    for k, amt in v.items():
        acct = str(k).strip()
        if acct:
            out[acct] = _as_int(amt, 0)
    return out


@dataclass(frozen=True)
class EngineConfig:
    engine_id: str
    mode: str  # "dev" | "testnet" | "prod"

    treasury_account: str

    # 0 = take genesis from the clock at boot
    genesis_ts: int

    api_host: str
    api_port: int

    log_level: str

    # Pre-minted balances seeded into the in-memory token ledger (dev/testnet only).
    initial_balances: Dict[str, int] = field(default_factory=dict)


_ALLOWED_MODES = {"dev", "testnet", "prod"}


def validate_engine_config(cfg: EngineConfig) -> None:
    """Fail-fast validation for operator config."""

    if not isinstance(cfg.engine_id, str) or not cfg.engine_id.strip():
        raise ValueError("engine_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if not isinstance(cfg.treasury_account, str) or not cfg.treasury_account.strip():
        raise ValueError("treasury_account must be a non-empty string")

    if int(cfg.genesis_ts) < 0:
        raise ValueError(f"genesis_ts must be >= 0; got: {cfg.genesis_ts}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    for acct, amt in cfg.initial_balances.items():
        if int(amt) < 0:
            raise ValueError(f"initial balance for {acct!r} must be >= 0; got: {amt}")

    if mode == "prod" and cfg.initial_balances:
        raise ValueError("initial_balances are only allowed in dev/testnet mode")


def default_engine_config() -> EngineConfig:
    return EngineConfig(
        engine_id="xenrank-dev",
        # Production-safe default: no seeded balances, no docs endpoints.
        mode="prod",
        treasury_account=TREASURY_ACCOUNT_ID,
        genesis_ts=0,
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
        initial_balances={},
    )


def read_engine_config_file(path: str) -> EngineConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("engine config must be a JSON object")

    d = default_engine_config()

    cfg = EngineConfig(
        engine_id=_as_str(raw.get("engine_id"), d.engine_id),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        treasury_account=_as_str(raw.get("treasury_account"), d.treasury_account),
        genesis_ts=_as_int(raw.get("genesis_ts"), d.genesis_ts),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level),
        initial_balances=_as_balances(raw.get("initial_balances")),
    )

    validate_engine_config(cfg)
    return cfg


def engine_config_from_env(base: Optional[EngineConfig] = None) -> EngineConfig:
    """Overlay XENRANK_* environment variables on `base` (defaults if omitted)."""
    d = base or default_engine_config()
    cfg = EngineConfig(
        engine_id=_as_str(os.environ.get("XENRANK_ENGINE_ID"), d.engine_id),
        mode=_as_str(os.environ.get("XENRANK_MODE"), d.mode).strip().lower(),
        treasury_account=_as_str(os.environ.get("XENRANK_TREASURY_ACCOUNT"), d.treasury_account),
        genesis_ts=_as_int(os.environ.get("XENRANK_GENESIS_TS"), d.genesis_ts),
        api_host=_as_str(os.environ.get("XENRANK_API_HOST"), d.api_host),
        api_port=_as_int(os.environ.get("XENRANK_API_PORT"), d.api_port),
        log_level=_as_str(os.environ.get("XENRANK_LOG_LEVEL"), d.log_level),
        initial_balances=dict(d.initial_balances),
    )
    validate_engine_config(cfg)
    return cfg


def load_engine_config(*, config_path: Optional[str] = None) -> EngineConfig:
    p = config_path or os.environ.get("XENRANK_CONFIG_PATH")
    if p:
        return read_engine_config_file(p)
    return engine_config_from_env()
