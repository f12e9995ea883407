# src/xenrank/api/structured_logging.py
from __future__ import annotations

import logging
import os
import sys
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from xenrank.runtime.event_log import log_event

_HANDLER_NAME = "xenrank-jsonl"


def configure_structured_logging(level_name: Optional[str] = None) -> None:
    """Send the xenrank.* event streams to stdout as JSONL.

    Level from level_name, else XENRANK_LOG_LEVEL, else INFO. Safe to call
    multiple times; later calls only adjust the level.
    """
    raw = level_name or os.environ.get("XENRANK_LOG_LEVEL") or "INFO"
    level = getattr(logging, str(raw).strip().upper(), logging.INFO)

    logger = logging.getLogger("xenrank")
    logger.setLevel(level)
    for h in logger.handlers:
        if h.get_name() == _HANDLER_NAME:
            h.setLevel(level)
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One http_request event per request.

    Tx routes leave request.state.tx_outcome behind (tx_type, account and
    "applied" or the rejection code); those fields are merged into the event.
    XENRANK_LOG_REQUESTS=0 disables it (default on).
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        raw = (os.environ.get("XENRANK_LOG_REQUESTS") or "1").strip().lower()
        self._enabled = raw not in {"0", "false", "no", "n", "off"}
        self._logger = logging.getLogger("xenrank.http")

    async def dispatch(self, request: Request, call_next):
        if not self._enabled:
            return await call_next(request)

        started = time.monotonic()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex

        status = 500
        err: Optional[str] = None
        response: Optional[Response] = None

        try:
            response = await call_next(request)
            status = int(getattr(response, "status_code", 200) or 200)
            response.headers.setdefault("x-request-id", request_id)
            return response
        except Exception as e:
            err = str(e)
            raise
        finally:
            tx: Dict[str, Any] = getattr(request.state, "tx_outcome", None) or {}
            log_event(
                self._logger,
                "http_request",
                request_id=request_id,
                method=request.method,
                path=str(request.url.path or ""),
                status=status,
                duration_ms=int((time.monotonic() - started) * 1000),
                error=err,
                **tx,
            )
