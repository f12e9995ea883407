from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class TxEnvelope:
    """One entry-operation request. signer is the acting account.

    Ordering comes from the executor's single-writer lock, so envelopes
    carry no nonce or sequence of their own.
    """

    tx_type: str
    signer: str
    payload: Dict[str, Any]

    @staticmethod
    def from_json(j: Any) -> "TxEnvelope":
        if isinstance(j, TxEnvelope):
            return j
        if not isinstance(j, dict):
            j = dict(j)  # type: ignore[arg-type]
        return TxEnvelope(
            tx_type=str(j.get("tx_type", "")),
            signer=str(j.get("signer", "")),
            payload=dict(j.get("payload", {}) or {}),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "tx_type": self.tx_type,
            "signer": self.signer,
            "payload": self.payload,
        }
