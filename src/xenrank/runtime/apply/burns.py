# src/xenrank/runtime/apply/burns.py
from __future__ import annotations

from typing import Any, Dict, Optional

from xenrank.ledger.constants import XEN_MIN_BURN
from xenrank.ledger.state import EngineState
from xenrank.runtime.apply.context import ApplyContext, as_account, as_int, check_amount_above
from xenrank.runtime.errors import InsufficientBalance
from xenrank.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


def burn(state: EngineState, ctx: ApplyContext, account: str, amount: int) -> Json:
    """Proof-of-burn: destroy tokens and count them against the account.

    Touches neither rank, emission nor staking state.
    """
    acct = as_account(account)
    amt = check_amount_above(amount, XEN_MIN_BURN)

    balance = ctx.balance_of(acct)
    if balance < amt:
        raise InsufficientBalance("insufficient_funds", {"balance": balance, "amount": amt})

    ctx.burn_from(acct, amt)
    total = state.dashboard.record_burn(acct, amt)

    return {"applied": "BURN", "account": acct, "amount": amt, "total_burned": int(total)}


def apply_burns(state: EngineState, env: TxEnvelope, ctx: ApplyContext) -> Optional[Json]:
    t = str(env.tx_type).strip().upper()
    if t != "BURN":
        return None
    amount = as_int(env.payload.get("amount"), field="amount")
    return burn(state, ctx, env.signer, amount)


__all__ = ["apply_burns", "burn"]
