# src/mend_safety/adapters/routers/base_router.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Base router (adapters layer).

Purpose:
    Canonical APIRouter wrapper for safety HTTP endpoints:
      - Versioned routing with stable prefixes (e.g. "/v1/safety").
      - Standard error response mapping using ErrorEnvelope.

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from fastapi import APIRouter

from mend_safety.adapters.schemas.http.envelopes import ErrorEnvelope
from mend_safety.infrastructure.logging.logger import get_json_logger

_LOGGER = get_json_logger(__name__)

TagType = str | Enum


class BaseRouter(APIRouter):
    """Router wrapper with versioned prefix and standard error responses.

    Args:
        version: API version segment (e.g. "v1").
        resource: Resource segment (e.g. "safety").
        tags: Default tags applied to all routes mounted on this router.
        dependencies: Optional global dependencies for all routes.
        **kwargs: Additional APIRouter kwargs.
    """

    def __init__(
        self,
        *,
        version: str,
        resource: str,
        tags: Sequence[TagType] | None = None,
        dependencies: Sequence[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        prefix = f"/{version}/{resource}"
        super().__init__(
            prefix=prefix,
            tags=list(tags) if tags is not None else None,
            dependencies=list(dependencies) if dependencies is not None else None,
            **kwargs,
        )
        _LOGGER.debug("router.initialized", extra={"extra": {"prefix": prefix}})

    @staticmethod
    def std_error_responses() -> dict[int | str, dict[str, Any]]:
        """Return the canonical error response mapping for endpoints."""
        return {
            400: {"model": ErrorEnvelope, "description": "Invalid input."},
            401: {"model": ErrorEnvelope, "description": "Missing or invalid bearer token."},
            403: {"model": ErrorEnvelope, "description": "Scope denied or context forbidden."},
            422: {"model": ErrorEnvelope, "description": "Request validation failed."},
            500: {"model": ErrorEnvelope, "description": "Internal server error."},
            503: {"model": ErrorEnvelope, "description": "Upstream unavailable."},
        }
