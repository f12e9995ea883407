from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from xenrank.ledger.constants import TREASURY_ACCOUNT_ID
from xenrank.ledger.state import EngineState
from xenrank.ledger.token import TokenLedger
from xenrank.runtime.apply.context import ApplyContext
from xenrank.runtime.clock import Clock
from xenrank.runtime.domain_dispatch import apply_tx
from xenrank.runtime.errors import ApplyError, InvariantViolation
from xenrank.runtime.event_log import log_event
from xenrank.runtime.metrics import publish_dashboard, record_applied, record_invariant_violation, record_rejected
from xenrank.runtime.quotes import current_params, quote_mint_reward, quote_stake_reward
from xenrank.runtime.state_invariants import check_state
from xenrank.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


class ExecutorError(RuntimeError):
    pass


class XenExecutor:
    """Single-writer host for one engine instance.

    Each envelope is applied to a clone of the state and committed only if it
    succeeds, so a rejected envelope leaves no trace besides its receipt.
    """

    def __init__(
        self,
        *,
        token: TokenLedger,
        clock: Clock,
        engine_id: str = "xenrank",
        treasury_account: str = TREASURY_ACCOUNT_ID,
        genesis_ts: Optional[int] = None,
        state: Optional[EngineState] = None,
        max_receipts: int = 1_000,
    ) -> None:
        self.engine_id = str(engine_id)
        self.treasury_account = str(treasury_account).strip()
        if not self.treasury_account:
            raise ExecutorError("treasury_account must be non-empty")

        self.token = token
        self.clock = clock

        # Acquired once; the only handle that can mint or burn on `token`.
        self._authority = token.issue_authority()

        if state is None:
            g = int(genesis_ts) if genesis_ts else int(clock.now_seconds())
            state = EngineState.genesis(g)
        self.state: EngineState = check_state(state)

        self._lock = threading.Lock()
        self._seq = 0
        self._receipts: Deque[Json] = deque(maxlen=max(int(max_receipts), 1))
        self._logger = logging.getLogger("xenrank.executor")

        log_event(
            self._logger,
            "engine_boot",
            engine_id=self.engine_id,
            genesis_ts=int(self.state.dashboard.genesis_ts),
            treasury=self.treasury_account,
        )
        publish_dashboard(self.state.dashboard)

    # ----------------------------
    # Writes
    # ----------------------------

    def submit_tx(self, env: Any) -> Json:
        """Apply one envelope atomically.

        Returns {"ok": True, "receipt": {...}} or {"ok": False, "error": {...}}.
        Token ledger calls are queued during apply and run only after the new
        state is committed. InvariantViolation is not converted; it propagates
        to the caller, and one raised during apply leaves neither state nor
        balances changed.
        """
        with self._lock:
            now = int(self.clock.now_seconds())
            ctx = ApplyContext(
                token=self.token,
                authority=self._authority,
                now_s=now,
                treasury_account=self.treasury_account,
                defer_token_effects=True,
            )

            tx_type = str(env.get("tx_type", "") if isinstance(env, dict) else getattr(env, "tx_type", "")).upper()
            signer = str(env.get("signer", "") if isinstance(env, dict) else getattr(env, "signer", ""))

            working = self.state.clone()
            try:
                receipt = apply_tx(working, env, ctx)
                check_state(working)
            except ApplyError as e:
                record_rejected(tx_type, e.code)
                log_event(
                    self._logger,
                    "tx_rejected",
                    tx_type=tx_type,
                    signer=signer,
                    code=e.code,
                    reason=e.reason,
                    now=now,
                )
                out: Json = {
                    "ok": False,
                    "tx_type": tx_type,
                    "signer": signer,
                    "now": now,
                    "error": {"code": e.code, "reason": e.reason, "details": e.details or {}},
                }
                self._receipts.append(out)
                return out
            except InvariantViolation as e:
                self._report_violation(tx_type, signer, str(e))
                raise

            self.state = working
            self._seq += 1
            try:
                ctx.flush_token_effects()
            except ValueError as e:
                # the ledger refused a call the engine had already checked
                self._report_violation(tx_type, signer, str(e))
                raise InvariantViolation(f"token ledger refused a committed effect: {e}") from e

            record_applied(tx_type)
            publish_dashboard(self.state.dashboard)

            out = {"ok": True, "seq": self._seq, "tx_type": tx_type, "signer": signer, "now": now, "receipt": receipt}
            self._receipts.append(out)
            log_event(self._logger, "tx_applied", seq=self._seq, tx_type=tx_type, signer=signer, now=now)
            return out

    def claim_rank(self, account: str, term: int) -> Json:
        return self.submit_tx(TxEnvelope("CLAIM_RANK", account, {"term": term}))

    def claim_mint_reward(self, account: str) -> Json:
        return self.submit_tx(TxEnvelope("CLAIM_MINT_REWARD", account, {}))

    def claim_mint_reward_stake(self, account: str, pct: int, term: int) -> Json:
        return self.submit_tx(TxEnvelope("CLAIM_MINT_REWARD_STAKE", account, {"pct": pct, "term": term}))

    def stake(self, account: str, amount: int, term: int) -> Json:
        return self.submit_tx(TxEnvelope("STAKE", account, {"amount": amount, "term": term}))

    def withdraw(self, account: str) -> Json:
        return self.submit_tx(TxEnvelope("WITHDRAW", account, {}))

    def burn(self, account: str, amount: int) -> Json:
        return self.submit_tx(TxEnvelope("BURN", account, {"amount": amount}))

    # ----------------------------
    # Reads
    # ----------------------------

    def dashboard(self) -> Json:
        with self._lock:
            return self.state.dashboard.to_json()

    def mint_claim(self, account: str) -> Optional[Json]:
        with self._lock:
            rec = self.state.mints.get(account)
            return rec.to_json() if rec is not None else None

    def stake_claim(self, account: str) -> Optional[Json]:
        with self._lock:
            rec = self.state.stakes.get(account)
            return rec.to_json() if rec is not None else None

    def balance_of(self, account: str) -> int:
        return int(self.token.balance_of(account))

    def snapshot(self) -> Json:
        with self._lock:
            return self.state.to_json()

    def params(self) -> Json:
        with self._lock:
            return current_params(self.state, self.clock.now_seconds(), self._minted_supply())

    def quote(self, account: str) -> Json:
        with self._lock:
            now = int(self.clock.now_seconds())
            return {
                "account": account,
                "now": now,
                "mint": quote_mint_reward(self.state, account, now),
                "stake": quote_stake_reward(self.state, account, now),
            }

    def recent_receipts(self, limit: int = 50) -> List[Json]:
        n = max(int(limit), 0)
        with self._lock:
            items = list(self._receipts)
        return items[-n:] if n else []

    # ----------------------------
    # Internals
    # ----------------------------

    def _minted_supply(self) -> int:
        v = self.token.total_minted_supply()
        return int(v) if v is not None else 0

    def _report_violation(self, tx_type: str, signer: str, error: str) -> None:
        record_invariant_violation()
        log_event(
            self._logger,
            "invariant_violation",
            level=logging.ERROR,
            tx_type=tx_type,
            signer=signer,
            error=error,
        )


__all__ = ["ExecutorError", "XenExecutor"]
