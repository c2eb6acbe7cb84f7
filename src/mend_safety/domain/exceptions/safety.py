# src/mend_safety/domain/exceptions/safety.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Safety-platform error taxonomy.

Summary:
    Concrete domain errors raised by scope resolution, input validation, the
    context store and every upstream call.

Notes:
    Insufficient data is deliberately *not* an exception: periods below the
    hours threshold are returned tagged with ``Sufficiency.INSUFFICIENT``.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from mend_safety.domain.exceptions.base import DomainError

__all__ = [
    "ScopeDenied",
    "ContextForbidden",
    "InvalidInput",
    "UpstreamUnavailable",
]


class ScopeDenied(DomainError):
    """Scope could not be resolved (unknown role or missing assignment)."""

    code = "SCOPE_DENIED"


class ContextForbidden(DomainError):
    """A non-staff session attempted to change the employer context."""

    code = "CONTEXT_FORBIDDEN"


class InvalidInput(DomainError):
    """Malformed month, identifier or window parameter."""

    code = "INVALID_INPUT"


class UpstreamUnavailable(DomainError):
    """The store, cache backend or narrative generator failed after retries."""

    code = "UPSTREAM_UNAVAILABLE"
