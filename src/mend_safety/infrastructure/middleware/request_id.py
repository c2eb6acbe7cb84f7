# src/mend_safety/infrastructure/middleware/request_id.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Request ID middleware.

Contract:
    * Reads:  X-Request-ID (optional)
    * Writes: X-Request-ID (always written)
    * Stores: request.state.request_id and request.state.trace_id
    * Enriches logs via contextvars
"""

from __future__ import annotations

import re
import uuid
from typing import Final

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from mend_safety.infrastructure.logging.logger import clear_request_context, set_request_context

REQUEST_ID_HEADER: Final[str] = "X-Request-ID"
_SAFE_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9\-_.:@]{1,128}$")


def coerce_request_id(raw: str | None) -> str:
    """Return the caller's id when safe, otherwise a new UUID4."""
    if raw and _SAFE_RE.match(raw):
        return raw
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to the request, the logs and the response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        req_id = coerce_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = req_id
        # Error envelopes read trace_id from request.state.
        request.state.trace_id = req_id
        set_request_context(request_id=req_id, trace_id=req_id)
        try:
            response: Response = await call_next(request)
        finally:
            clear_request_context()
        response.headers.setdefault(REQUEST_ID_HEADER, req_id)
        return response
