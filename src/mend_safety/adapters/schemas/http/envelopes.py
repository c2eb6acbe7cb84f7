# src/mend_safety/adapters/schemas/http/envelopes.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""HTTP envelopes (adapters layer).

Purpose:
    Canonical transport-facing envelopes:
      - ErrorEnvelope
      - SuccessEnvelope[T]
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from mend_safety.adapters.schemas.http.base import BaseHTTPSchema

__all__ = ["ErrorObject", "ErrorEnvelope", "SuccessEnvelope"]

T = TypeVar("T")


class ErrorObject(BaseModel):
    """Structured error object inside ErrorEnvelope."""

    model_config = ConfigDict(
        title="ErrorObject",
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "code": "SCOPE_DENIED",
                    "http_status": 403,
                    "message": "Access denied",
                    "details": {"reason": "unknown_role"},
                    "trace_id": "req-123",
                }
            ]
        },
    )

    code: str = Field(
        ...,
        description=(
            "Stable machine-readable error code: SCOPE_DENIED, CONTEXT_FORBIDDEN, "
            "INVALID_INPUT, UPSTREAM_UNAVAILABLE, UNAUTHORIZED, VALIDATION_ERROR "
            "or INTERNAL_ERROR."
        ),
    )
    http_status: int = Field(..., description="Associated HTTP status.")
    message: str = Field(..., description="Human-readable error description.")
    details: dict[str, Any] | None = Field(
        default=None, description="Optional structured details safe for clients."
    )
    trace_id: str | None = Field(default=None, description="Request correlation identifier.")


class ErrorEnvelope(BaseHTTPSchema):
    """Canonical error envelope: {"error": ErrorObject}."""

    model_config = ConfigDict(title="ErrorEnvelope", extra="forbid")

    error: ErrorObject = Field(..., description="Structured error details.")


class SuccessEnvelope(BaseHTTPSchema, Generic[T]):
    """Success envelope for non-paginated responses: {"data": T}."""

    model_config = ConfigDict(title="SuccessEnvelope", extra="forbid")

    data: T = Field(..., description="Returned resource or value.")
