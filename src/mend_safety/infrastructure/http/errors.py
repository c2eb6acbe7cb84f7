# src/mend_safety/infrastructure/http/errors.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""HTTP error envelope and exception handlers.

Every error response has the shape::

    {"error": {"code", "http_status", "message", "details"?, "trace_id"?}}

Domain errors map to a status by their stable ``code``.
"""

from __future__ import annotations

from typing import Any, Final

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.responses import Response

from mend_safety.domain.exceptions.base import DomainError
from mend_safety.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

DOMAIN_STATUS: Final[dict[str, int]] = {
    "SCOPE_DENIED": 403,
    "CONTEXT_FORBIDDEN": 403,
    "INVALID_INPUT": 400,
    "UPSTREAM_UNAVAILABLE": 503,
}

_HTTP_CODES: Final[dict[int, str]] = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _trace_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "trace_id", None)


def error_envelope(
    *,
    code: str,
    http_status: int,
    message: str,
    details: dict[str, Any] | None = None,
    trace_id: str | None = None,
) -> dict[str, Any]:
    err: dict[str, Any] = {
        "code": code,
        "http_status": http_status,
        "message": message,
    }
    if details:
        err["details"] = details
    if trace_id is not None:
        err["trace_id"] = trace_id
    return {"error": err}


async def handle_domain_error(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, DomainError)
    status_code = DOMAIN_STATUS.get(exc.code, 500)
    log = logger.error if status_code >= 500 else logger.info
    log("http.domain_error", extra={"extra": {"path": request.url.path, **exc.to_log_extra()}})
    payload = error_envelope(
        code=exc.code if status_code != 500 else "INTERNAL_ERROR",
        http_status=status_code,
        message=exc.message or exc.code,
        details=exc.details if status_code < 500 else None,
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=status_code, content=payload)


async def handle_validation_error(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, RequestValidationError)
    payload = error_envelope(
        code="VALIDATION_ERROR",
        http_status=422,
        message="Request validation failed",
        details={"errors": exc.errors()},
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=422, content=payload)


async def handle_http_exception(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, HTTPException)
    payload = error_envelope(
        code=_HTTP_CODES.get(exc.status_code, "HTTP_ERROR"),
        http_status=exc.status_code,
        message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
        details=None if isinstance(exc.detail, str) else {"detail": exc.detail},
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)


async def handle_unhandled_exception(request: Request, exc: Exception) -> Response:
    logger.exception(
        "http.unhandled_exception",
        extra={"extra": {"path": request.url.path, "exc_type": type(exc).__name__}},
    )
    payload = error_envelope(
        code="INTERNAL_ERROR",
        http_status=500,
        message="Internal server error",
        trace_id=_trace_id(request),
    )
    return JSONResponse(status_code=500, content=payload)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unhandled_exception)
