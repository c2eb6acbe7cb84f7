# src/mend_safety/application/use_cases/metrics/compute_metrics.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Use case: compute safety metrics for one scope and month.

Purpose:
    Load scope-filtered incidents and hours for the month and aggregate them
    into LTIFR/TRIFR/MTIFR with a sufficiency tag.

Layer:
    application/use_cases/metrics

Notes:
    - Store failures propagate as ``UpstreamUnavailable``; a metric that
      could not be computed is never reported as zero incidents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from mend_safety.application.services.scoped_rows import ScopedRowsLoader
from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.metrics import Metrics
from mend_safety.domain.interfaces.repositories.safety_store import SafetyStore
from mend_safety.domain.services.metrics_aggregator import (
    DEFAULT_MIN_MONTHLY_HOURS,
    compute_metrics,
)
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from mend_safety.infrastructure.logging.logger import get_json_logger

logger: logging.Logger = get_json_logger(__name__)


@dataclass(frozen=True)
class ComputeMetricsRequest:
    """Request parameters for metrics computation."""

    scope: ScopeDecision
    month: ReportingMonth


class ComputeMetricsUseCase:
    """Compute monthly metrics for a resolved scope."""

    def __init__(
        self, store: SafetyStore, *, min_monthly_hours: Decimal = DEFAULT_MIN_MONTHLY_HOURS
    ) -> None:
        self._loader = ScopedRowsLoader(store)
        self._min_monthly_hours = min_monthly_hours

    async def execute(self, req: ComputeMetricsRequest) -> Metrics:
        """Compute metrics for ``req.month`` under ``req.scope``.

        Raises:
            ScopeDenied: If the scope is denied.
            UpstreamUnavailable: If the store fails after retries.
        """
        scope = req.scope.require_readable()
        logger.info(
            "safety.compute_metrics.start",
            extra={"extra": {"scope": scope.describe(), "month": str(req.month)}},
        )

        rows = await self._loader.load(scope, [req.month])
        metrics = compute_metrics(
            month=req.month,
            incidents=rows.incidents,
            hours_records=rows.hours_records,
            min_monthly_hours=self._min_monthly_hours,
        )

        logger.info(
            "safety.compute_metrics.success",
            extra={
                "extra": {
                    "scope": scope.describe(),
                    "month": str(req.month),
                    "sufficiency": metrics.sufficiency.value,
                    "incidents": metrics.total_incidents,
                }
            },
        )
        return metrics
