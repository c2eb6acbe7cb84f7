# src/mend_safety/application/use_cases/metrics/build_series.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Use case: build a month-ascending metrics series for a scope.

Layer:
    application/use_cases/metrics

Notes:
    - The window defaults to the ``window_months`` months ending at the
      current UTC month.
    - Empty windows return an empty list rather than raising.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from mend_safety.application.services.scoped_rows import ScopedRowsLoader
from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.metrics import SeriesPoint
from mend_safety.domain.interfaces.repositories.safety_store import SafetyStore
from mend_safety.domain.services.metrics_aggregator import DEFAULT_MIN_MONTHLY_HOURS
from mend_safety.domain.services.time_series_builder import build_series, series_window
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from mend_safety.infrastructure.logging.logger import get_json_logger

logger: logging.Logger = get_json_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class BuildSeriesRequest:
    """Request parameters for series construction.

    Attributes:
        scope: Resolved scope.
        window_months: Number of calendar months in the window (1..24).
        end_month: Last month of the window; defaults to the current month.
    """

    scope: ScopeDecision
    window_months: int = 6
    end_month: ReportingMonth | None = None


class BuildSeriesUseCase:
    """Build a time series of monthly metrics."""

    def __init__(
        self,
        store: SafetyStore,
        *,
        min_monthly_hours: Decimal = DEFAULT_MIN_MONTHLY_HOURS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._loader = ScopedRowsLoader(store)
        self._min_monthly_hours = min_monthly_hours
        self._clock = clock

    async def execute(self, req: BuildSeriesRequest) -> list[SeriesPoint]:
        """Return one point per month in the window, ascending.

        Raises:
            InvalidInput: If the window size is out of range.
            ScopeDenied: If the scope is denied.
            UpstreamUnavailable: If the store fails after retries.
        """
        end_month = req.end_month or ReportingMonth.of(self._clock())
        months = series_window(end_month, req.window_months)
        scope = req.scope.require_readable()

        logger.info(
            "safety.build_series.start",
            extra={
                "extra": {
                    "scope": scope.describe(),
                    "from": str(months[0]),
                    "to": str(months[-1]),
                }
            },
        )

        rows = await self._loader.load(scope, months)
        series = build_series(
            months=months,
            incidents=rows.incidents,
            hours_records=rows.hours_records,
            min_monthly_hours=self._min_monthly_hours,
        )

        logger.info(
            "safety.build_series.success",
            extra={
                "extra": {
                    "scope": scope.describe(),
                    "points": len(series),
                    "insufficient_points": sum(1 for p in series if not p.metrics.is_sufficient),
                }
            },
        )
        return series
