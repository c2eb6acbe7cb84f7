# src/mend_safety/domain/exceptions/base.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Base Domain Exceptions.

Summary:
    Root of the error taxonomy shared by the domain and application layers.
    Adapters translate these into HTTP error envelopes using the stable
    ``code`` attribute.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all safety-platform domain errors.

    Attributes:
        code: Stable error code used by the HTTP layer and in log events.
        details: Structured, client-safe diagnostic payload.
    """

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable message, safe to return to API clients.
            details: Optional machine-readable context (never secrets or rows).
        """
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def to_log_extra(self) -> dict[str, Any]:
        """Return a flat mapping suitable for structured logging."""
        return {"error_code": self.code, "error_message": self.message, **self.details}
