from __future__ import annotations

import logging
import os
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from launchpad.api.errors import ApiError, api_error_handler
from launchpad.api.routes_tokens import router as tokens_router
from launchpad.api.structured_logging import RequestLogMiddleware
from launchpad.runtime.gateway import SigningSubmissionGateway
from launchpad.runtime.launch_boot import build_orchestrator
from launchpad.runtime.launch_config import LaunchConfig, load_launch_config
from launchpad.runtime.run_logging import log_event

log = logging.getLogger("launchpad.http")


def _parse_cors_origins(mode: str) -> List[str]:
    """Explicit allowlist from LAUNCHPAD_CORS_ORIGINS; "*" only outside prod."""
    raw = os.environ.get("LAUNCHPAD_CORS_ORIGINS", "").strip()
    if not raw:
        return []

    origins = [o.strip() for o in raw.split(",") if o.strip()]
    if "*" in origins:
        if mode == "prod":
            raise RuntimeError(
                "Unsafe CORS configuration: wildcard '*' not allowed in production. "
                "Set explicit origins in LAUNCHPAD_CORS_ORIGINS."
            )
        return ["*"]
    return origins


def create_app(
    *,
    cfg: Optional[LaunchConfig] = None,
    gateway: Optional[SigningSubmissionGateway] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Dev mode wires the in-memory store and ledger. Other modes need a
    gateway passed in; without one the app starts but /v1/tokens/issue
    answers 503 so health checks can surface the misconfiguration.
    """
    c = cfg or load_launch_config()

    if c.mode == "prod":
        app = FastAPI(title="Launchpad API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Launchpad API")

    app.state.cfg = c
    try:
        app.state.orchestrator = build_orchestrator(c, gateway=gateway)
    except RuntimeError as e:
        log_event(log, "orchestrator_unavailable", level=logging.WARNING, mode=c.mode, error=str(e))
        app.state.orchestrator = None

    app.add_exception_handler(ApiError, api_error_handler)  # type: ignore[arg-type]
    app.add_middleware(RequestLogMiddleware)

    cors_origins = _parse_cors_origins(c.mode)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=cors_origins != ["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.include_router(tokens_router)
    return app
