# src/mend_safety/application/use_cases/access/resolve_scope.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Use case: resolve the effective scope for an authenticated request.

Purpose:
    The single authorization point per request. Combines trusted identity
    claims, the requested employer filter and the staff session context into
    a ``ScopeDecision`` via the pure resolver.

Layer:
    application/use_cases/access

Notes:
    - Input shapes are validated before resolution (InvalidInput).
    - Session context is only read for staff roles.
    - DENIED is raised as ``ScopeDenied``; it never degrades to an empty result.
"""

from __future__ import annotations

import logging
from contextlib import suppress
from dataclasses import dataclass

from mend_safety.application.interfaces.context_store_port import ContextStorePort
from mend_safety.domain.entities.access import IdentityClaims, ScopeDecision
from mend_safety.domain.services.scope_resolver import RoleRegistry, resolve_scope
from mend_safety.domain.value_objects.identifiers import optional_positive_id
from mend_safety.infrastructure.logging.logger import get_json_logger
from mend_safety.infrastructure.observability.metrics import get_scope_decisions_total

logger: logging.Logger = get_json_logger(__name__)


@dataclass(frozen=True)
class ResolveScopeRequest:
    """Request parameters for scope resolution.

    Attributes:
        identity: Trusted claims for the authenticated session.
        requested_employer_id: Optional employer filter supplied by the caller.
    """

    identity: IdentityClaims
    requested_employer_id: int | None = None


class ResolveScopeUseCase:
    """Resolve and enforce the request scope."""

    def __init__(self, registry: RoleRegistry, context_store: ContextStorePort) -> None:
        self._registry = registry
        self._context_store = context_store

    async def execute(self, req: ResolveScopeRequest) -> ScopeDecision:
        """Return a readable scope for the request.

        Raises:
            InvalidInput: If the requested employer id is malformed.
            ScopeDenied: If the scope cannot be resolved.
            UpstreamUnavailable: If the session context could not be read.
        """
        requested = optional_positive_id(req.requested_employer_id, field="employer_id")
        identity = req.identity
        role = self._registry.lookup(identity.role_id)

        context_employer_id: int | None = None
        if role is not None and role.is_staff:
            context_employer_id = await self._context_store.get(identity.session_id)

        decision = resolve_scope(
            role, identity.assigned_employer_id, requested, context_employer_id
        )

        with suppress(Exception):
            get_scope_decisions_total().labels(kind=decision.kind.value).inc()

        log_extra = {
            "user_id": identity.user_id,
            "role_id": identity.role_id,
            "scope": decision.describe(),
            "requested_employer_id": requested,
            "context_applied": requested is None and context_employer_id is not None,
            "request_overridden": (
                requested is not None
                and decision.employer_id is not None
                and requested != decision.employer_id
            ),
        }
        if decision.is_denied:
            logger.warning(
                "scope.resolve.denied", extra={"extra": {**log_extra, "reason": decision.reason}}
            )
        else:
            logger.info("scope.resolve.success", extra={"extra": log_extra})

        return decision.require_readable()
