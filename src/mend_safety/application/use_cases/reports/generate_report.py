# src/mend_safety/application/use_cases/reports/generate_report.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Use case: get or generate the narrative report for an employer month.

Layer:
    application/use_cases/reports

Notes:
    - Generation is delegated to the process-wide ``ReportCache`` so that
      concurrent requests for the same key share a single writer.
    - An ALL scope is rejected; reports are always for one employer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mend_safety.application.services.report_cache import ReportCache
from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.report import ReportResult
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from mend_safety.infrastructure.logging.logger import get_json_logger

logger: logging.Logger = get_json_logger(__name__)


@dataclass(frozen=True)
class GenerateReportRequest:
    scope: ScopeDecision
    month: ReportingMonth


class GenerateReportUseCase:
    """Return a fresh narrative report, generating it at most once per miss."""

    def __init__(self, cache: ReportCache) -> None:
        self._cache = cache

    async def execute(self, req: GenerateReportRequest) -> ReportResult:
        """Return the report for the scope's employer and month.

        Raises:
            ScopeDenied: If the scope is denied.
            InvalidInput: If the scope is not a single employer.
            UpstreamUnavailable: If the store, lock or generator fails.
        """
        employer_id = req.scope.require_single_employer()
        result = await self._cache.get_or_generate_report(req.scope, req.month)
        logger.info(
            "safety.report.success",
            extra={
                "extra": {
                    "employer_id": employer_id,
                    "month": str(req.month),
                    "cached": result.cached,
                }
            },
        )
        return result
