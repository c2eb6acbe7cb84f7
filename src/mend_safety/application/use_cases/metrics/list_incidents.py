# src/mend_safety/application/use_cases/metrics/list_incidents.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Use case: list incidents visible to a resolved scope for one month."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from mend_safety.application.services.scoped_rows import ScopedRowsLoader
from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.safety import Incident
from mend_safety.domain.interfaces.repositories.safety_store import SafetyStore
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from mend_safety.infrastructure.logging.logger import get_json_logger

logger: logging.Logger = get_json_logger(__name__)


@dataclass(frozen=True)
class ListIncidentsRequest:
    scope: ScopeDecision
    month: ReportingMonth


class ListIncidentsUseCase:
    """Return incidents in scope, ordered by (occurred_on, incident_id)."""

    def __init__(self, store: SafetyStore) -> None:
        self._loader = ScopedRowsLoader(store)

    async def execute(self, req: ListIncidentsRequest) -> Sequence[Incident]:
        rows = await self._loader.load(req.scope, [req.month])
        incidents = sorted(rows.incidents, key=lambda i: (i.occurred_on, i.incident_id))
        logger.info(
            "safety.list_incidents.success",
            extra={
                "extra": {
                    "scope": req.scope.describe(),
                    "month": str(req.month),
                    "count": len(incidents),
                }
            },
        )
        return incidents
