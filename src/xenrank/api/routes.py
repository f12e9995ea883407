# src/xenrank/api/routes.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request, Response

from xenrank.api.errors import ApiError
from xenrank.api.schemas import (
    AccountRequest,
    BurnRequest,
    ClaimMintRewardStakeRequest,
    ClaimRankRequest,
    StakeRequest,
)
from xenrank.runtime.metrics import format_prometheus, metrics_enabled

router = APIRouter()

Json = Dict[str, Any]

_CONFLICT_CODES = {"claim_conflict", "stake_conflict"}


def _executor(request: Request):
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.unavailable("not_ready", "executor not attached to app.state", {})
    return ex


def _submit_result(request: Request, meta: Json) -> Json:
    err = meta.get("error") if isinstance(meta.get("error"), dict) else {}
    code = str(err.get("code") or "rejected")
    # picked up by RequestLogMiddleware for the http_request event
    request.state.tx_outcome = {
        "tx_type": meta.get("tx_type", ""),
        "account": meta.get("signer", ""),
        "outcome": "applied" if meta.get("ok") else code,
    }
    if meta.get("ok"):
        return meta
    details = {"reason": str(err.get("reason") or ""), **(err.get("details") or {})}
    if code in _CONFLICT_CODES:
        raise ApiError.conflict(code, "tx rejected", details)
    raise ApiError.bad_request(code, "tx rejected", details)


@router.get("/health")
def health(request: Request) -> Json:
    ex = getattr(request.app.state, "executor", None)
    return {"ok": True, "ready": ex is not None, "engine_id": getattr(ex, "engine_id", "")}


@router.get("/dashboard")
def dashboard(request: Request) -> Json:
    return {"ok": True, "dashboard": _executor(request).dashboard()}


@router.get("/params")
def params(request: Request) -> Json:
    return {"ok": True, "params": _executor(request).params()}


@router.get("/accounts/{account}")
def account_get(account: str, request: Request) -> Json:
    ex = _executor(request)
    burns = ex.dashboard().get("user_burns", {})
    return {
        "ok": True,
        "account": account,
        "balance": ex.balance_of(account),
        "mint_claim": ex.mint_claim(account),
        "stake_claim": ex.stake_claim(account),
        "burned": int(burns.get(account, 0)),
    }


@router.get("/accounts/{account}/quote")
def account_quote(account: str, request: Request) -> Json:
    return {"ok": True, **_executor(request).quote(account)}


@router.get("/receipts")
def receipts(request: Request, limit: int = 50) -> Json:
    if limit < 0 or limit > 1000:
        raise ApiError.bad_request("bad_request", "limit must be 0..1000", {"limit": limit})
    return {"ok": True, "receipts": _executor(request).recent_receipts(limit)}


@router.post("/tx/claim_rank")
def tx_claim_rank(body: ClaimRankRequest, request: Request) -> Json:
    return _submit_result(request, _executor(request).claim_rank(body.account, body.term))


@router.post("/tx/claim_mint_reward")
def tx_claim_mint_reward(body: AccountRequest, request: Request) -> Json:
    return _submit_result(request, _executor(request).claim_mint_reward(body.account))


@router.post("/tx/claim_mint_reward_stake")
def tx_claim_mint_reward_stake(body: ClaimMintRewardStakeRequest, request: Request) -> Json:
    return _submit_result(request, _executor(request).claim_mint_reward_stake(body.account, body.pct, body.term))


@router.post("/tx/stake")
def tx_stake(body: StakeRequest, request: Request) -> Json:
    return _submit_result(request, _executor(request).stake(body.account, body.amount, body.term))


@router.post("/tx/withdraw")
def tx_withdraw(body: AccountRequest, request: Request) -> Json:
    return _submit_result(request, _executor(request).withdraw(body.account))


@router.post("/tx/burn")
def tx_burn(body: BurnRequest, request: Request) -> Json:
    return _submit_result(request, _executor(request).burn(body.account, body.amount))


@router.get("/metrics")
def metrics() -> Response:
    """Prometheus-style metrics. Disabled unless XENRANK_METRICS_ENABLED=1."""
    if not metrics_enabled():
        return Response(status_code=404, content="not_found\n", media_type="text/plain")
    return Response(content=format_prometheus(), media_type="text/plain")
