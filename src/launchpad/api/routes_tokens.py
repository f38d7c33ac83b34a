from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from launchpad.api.errors import ApiError
from launchpad.api.schemas import HealthResponse, IssueTokenRequest, IssueTokenResponse
from launchpad.runtime.errors import IssuanceError
from launchpad.runtime.metrics import format_prometheus, metrics_enabled
from launchpad.runtime.orchestrator import IssuanceOrchestrator

router = APIRouter(prefix="/v1")

Json = Dict[str, Any]


def _orchestrator(request: Request) -> IssuanceOrchestrator:
    orch = getattr(request.app.state, "orchestrator", None)
    if orch is None:
        raise ApiError.unavailable("not_ready", "no ledger gateway attached", {})
    return orch


@router.post("/tokens/issue", response_model=IssueTokenResponse)
def issue_token(body: IssueTokenRequest, request: Request) -> Json:
    """Run one issuance to completion.

    Sync route: FastAPI runs it in its worker threadpool, so the blocking
    publish and submit calls do not stall the event loop and concurrent
    issuances stay independent.
    """
    orch = _orchestrator(request)
    try:
        result = orch.execute(body.to_issuance_request())
    except IssuanceError as e:
        raise ApiError.from_issuance_error(e) from e
    out = result.to_json()
    out["ok"] = True
    return out


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> Json:
    cfg = request.app.state.cfg
    orch = getattr(request.app.state, "orchestrator", None)
    signer = bool(orch is not None and orch.payer is not None)
    return {
        "ok": orch is not None,
        "mode": cfg.mode,
        "signer": signer,
        "gateway": orch is not None,
        "details": {"cluster": cfg.cluster},
    }


@router.get("/metrics")
def metrics() -> PlainTextResponse:
    if not metrics_enabled():
        raise ApiError(404, "metrics_disabled", "set LAUNCHPAD_METRICS_ENABLED=1", {})
    return PlainTextResponse(format_prometheus())
