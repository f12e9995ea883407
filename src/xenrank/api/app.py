from __future__ import annotations

import os

from fastapi import FastAPI

from xenrank.api.errors import ApiError, api_error_handler, invariant_violation_handler
from xenrank.api.routes import router
from xenrank.api.structured_logging import RequestLogMiddleware
from xenrank.runtime.errors import InvariantViolation
from xenrank.runtime.executor_boot import build_executor as _build_executor


def build_executor():
    """Build the XenExecutor for the API runtime.

    Wrapped so tests can monkeypatch `xenrank.api.app.build_executor`
    without reaching into runtime modules.
    """
    return _build_executor()


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load engine config + attach executor
      - False: no executor; routes needing one answer 503
    """
    mode = os.environ.get("XENRANK_MODE", "prod").strip().lower()

    # Disable docs in production.
    if mode == "prod":
        app = FastAPI(title="xenrank engine API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="xenrank engine API")

    app.state.executor = build_executor() if boot_runtime else None

    app.add_middleware(RequestLogMiddleware)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(InvariantViolation, invariant_violation_handler)

    app.include_router(router, prefix="/v1")

    return app
