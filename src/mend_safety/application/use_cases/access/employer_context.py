# src/mend_safety/application/use_cases/access/employer_context.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Staff employer-context service.

Purpose:
    Let staff sessions pin a "current employer" that scope resolution uses
    when no explicit filter is requested. The context lives per session and
    is removed on sign-out.

Layer:
    application/use_cases/access
"""

from __future__ import annotations

import logging

from mend_safety.application.interfaces.context_store_port import ContextStorePort
from mend_safety.domain.entities.access import IdentityClaims
from mend_safety.domain.exceptions.safety import ContextForbidden
from mend_safety.domain.services.scope_resolver import RoleRegistry
from mend_safety.domain.value_objects.identifiers import require_positive_id
from mend_safety.infrastructure.logging.logger import get_json_logger

logger: logging.Logger = get_json_logger(__name__)


class EmployerContextService:
    """Get, set and clear the staff employer context for a session."""

    def __init__(self, registry: RoleRegistry, store: ContextStorePort) -> None:
        self._registry = registry
        self._store = store

    def _require_staff(self, identity: IdentityClaims, action: str) -> None:
        role = self._registry.lookup(identity.role_id)
        if role is None or not role.is_staff:
            logger.warning(
                "context.forbidden",
                extra={
                    "extra": {
                        "action": action,
                        "user_id": identity.user_id,
                        "role_id": identity.role_id,
                    }
                },
            )
            raise ContextForbidden(
                "employer context is only available to staff sessions",
                details={"action": action},
            )

    async def set_context(self, identity: IdentityClaims, employer_id: int) -> int:
        """Pin ``employer_id`` for the session.

        Raises:
            InvalidInput: If ``employer_id`` is malformed.
            ContextForbidden: If the session is not staff.
        """
        employer_id = require_positive_id(employer_id, field="employer_id")
        self._require_staff(identity, "set")
        await self._store.put(identity.session_id, employer_id)
        logger.info(
            "context.set",
            extra={"extra": {"user_id": identity.user_id, "employer_id": employer_id}},
        )
        return employer_id

    async def get_context(self, identity: IdentityClaims) -> int | None:
        self._require_staff(identity, "get")
        return await self._store.get(identity.session_id)

    async def clear_context(self, identity: IdentityClaims) -> None:
        self._require_staff(identity, "clear")
        await self._store.delete(identity.session_id)
        logger.info("context.clear", extra={"extra": {"user_id": identity.user_id}})

    async def end_session(self, identity: IdentityClaims) -> None:
        """Drop any context held by the session (sign-out). Allowed for every role."""
        await self._store.delete(identity.session_id)
        logger.info("context.session_ended", extra={"extra": {"user_id": identity.user_id}})
