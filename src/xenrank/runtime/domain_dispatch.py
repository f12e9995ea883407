# src/xenrank/runtime/domain_dispatch.py

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from xenrank.ledger.state import EngineState
from xenrank.runtime.apply.burns import apply_burns
from xenrank.runtime.apply.context import ApplyContext
from xenrank.runtime.apply.minting import MINT_TX_TYPES, apply_minting
from xenrank.runtime.apply.staking import STAKE_TX_TYPES, apply_staking
from xenrank.runtime.errors import ApplyError
from xenrank.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]
ApplyFn = Callable[[EngineState, TxEnvelope, ApplyContext], Optional[Json]]

SUPPORTED_TX_TYPES = frozenset(MINT_TX_TYPES | STAKE_TX_TYPES | {"BURN"})


def _tx_type(env: TxEnvelope) -> str:
    return str(env.tx_type or "").strip().upper()


_APPLIERS: tuple[ApplyFn, ...] = (
    apply_minting,
    apply_staking,
    apply_burns,
)


def apply_tx(state: EngineState, env: Any, ctx: ApplyContext) -> Json:
    """Dispatch a TxEnvelope to the first domain applier that claims it.

    Mutates `state` in place. Callers that need all-or-nothing semantics apply
    to a clone (see XenExecutor).
    """
    if not isinstance(state, EngineState):
        raise TypeError(f"state must be EngineState, got {type(state)}")

    try:
        e = TxEnvelope.from_json(env)
    except Exception as exc:
        raise ApplyError("invalid_payload", "bad_envelope", {"error": str(exc)})

    t = _tx_type(e)
    if not t:
        raise ApplyError("invalid_payload", "missing_tx_type", {})
    if not str(e.signer or "").strip():
        raise ApplyError("invalid_payload", "missing_signer", {"tx_type": t})

    for fn in _APPLIERS:
        meta = fn(state, e, ctx)
        if meta is not None:
            return meta

    raise ApplyError("invalid_tx_type", "unsupported_tx_type", {"tx_type": t})


__all__ = ["ApplyError", "SUPPORTED_TX_TYPES", "apply_tx"]
