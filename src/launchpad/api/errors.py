from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from launchpad.runtime.errors import GroupSubmissionError, IssuanceError, MetadataPublishError, ValidationError


@dataclass(frozen=True, slots=True)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def bad_gateway(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(502, code, message, details or {})

    @staticmethod
    def unavailable(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(503, code, message, details or {})

    @staticmethod
    def from_issuance_error(err: IssuanceError) -> "ApiError":
        details = err.to_json()
        if isinstance(err, ValidationError):
            return ApiError.bad_request(err.code, err.reason, details)
        if isinstance(err, (MetadataPublishError, GroupSubmissionError)):
            return ApiError.bad_gateway(err.code, err.reason, details)
        return ApiError(500, err.code, err.reason, details)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": {"code": exc.code, "message": exc.message, "details": exc.details}},
    )
