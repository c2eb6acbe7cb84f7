# src/mend_safety/domain/services/time_series_builder.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Monthly safety time series.

Purpose:
    Build a month-ascending series of Metrics over a window of calendar
    months from scope-filtered rows.

Design:
    - One point per calendar month in the window, ascending, regardless of
      row arrival order. Hours corrections are collapsed (latest wins) by the
      aggregator before each point is computed.
    - A window in which the scope has no incidents and no hours records at
      all yields an empty list.
    - No caching and no I/O; identical inputs give identical output.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from mend_safety.domain.entities.metrics import SeriesPoint
from mend_safety.domain.entities.safety import Incident, MonthlyHoursRecord
from mend_safety.domain.enums.safety import RateMetric
from mend_safety.domain.exceptions.safety import InvalidInput
from mend_safety.domain.services.metrics_aggregator import (
    DEFAULT_MIN_MONTHLY_HOURS,
    compute_metrics,
)
from mend_safety.domain.value_objects.reporting_month import ReportingMonth

__all__ = [
    "MAX_WINDOW_MONTHS",
    "validate_window",
    "series_window",
    "build_series",
    "average_comparable",
]

MAX_WINDOW_MONTHS = 24


def validate_window(window_months: int) -> int:
    """Return ``window_months`` if within 1..MAX_WINDOW_MONTHS.

    Raises:
        InvalidInput: If the window is out of range or not an integer.
    """
    if (
        isinstance(window_months, bool)
        or not isinstance(window_months, int)
        or not 1 <= window_months <= MAX_WINDOW_MONTHS
    ):
        raise InvalidInput(
            f"window_months must be an integer between 1 and {MAX_WINDOW_MONTHS}",
            details={"window_months": window_months},
        )
    return window_months


def series_window(end_month: ReportingMonth, window_months: int) -> list[ReportingMonth]:
    """Return the validated, ascending list of months in the window."""
    return ReportingMonth.window(end_month, validate_window(window_months))


def build_series(
    *,
    months: Sequence[ReportingMonth],
    incidents: Iterable[Incident],
    hours_records: Iterable[MonthlyHoursRecord],
    min_monthly_hours: Decimal = DEFAULT_MIN_MONTHLY_HOURS,
) -> list[SeriesPoint]:
    """Build one SeriesPoint per month, ordered ascending.

    Args:
        months: Calendar months in the window (any order, duplicates ignored).
        incidents: Scope-filtered incidents covering the window.
        hours_records: Scope-filtered hours records covering the window.
        min_monthly_hours: Sufficiency threshold.

    Returns:
        list[SeriesPoint]: Ascending by month; empty when the window has no data.
    """
    ordered = sorted(set(months))
    if not ordered:
        return []
    wanted = set(ordered)

    incidents_in_window = [i for i in incidents if i.month in wanted]
    hours_in_window = [r for r in hours_records if r.month in wanted]
    if not incidents_in_window and not hours_in_window:
        return []

    return [
        SeriesPoint(
            month=month,
            metrics=compute_metrics(
                month=month,
                incidents=incidents_in_window,
                hours_records=hours_in_window,
                min_monthly_hours=min_monthly_hours,
            ),
        )
        for month in ordered
    ]


def average_comparable(series: Iterable[SeriesPoint], metric: RateMetric) -> Decimal | None:
    """Average ``metric`` over sufficient periods only.

    Returns:
        The mean rounded to 2 places, or ``None`` when no period qualifies.
    """
    values = [v for v in (p.metrics.comparable(metric) for p in series) if v is not None]
    if not values:
        return None
    return (sum(values, Decimal(0)) / len(values)).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
