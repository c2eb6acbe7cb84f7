# src/mend_safety/domain/services/metrics_aggregator.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Injury-rate metrics aggregation.

Purpose:
    Turn scope-filtered incident rows and worked-hours records into per-month
    frequency rates with a data-sufficiency tag.

Design:
    - Rates: ``count / total_hours * 1_000_000`` rounded half-up to 2 places.
      A period with zero hours has no rate (``None``), never a zero rate.
    - Hours: within one owner (site, or employer-level record) and month the
      record with the latest ``recorded_at`` wins. Corrections are never
      summed. An employer-level record, when present, replaces that
      employer's site records for the month.
    - Sufficiency: periods below the minimum are tagged INSUFFICIENT. Rates
      are still reported but hidden from comparative accessors.
    - Pure functions; callers are responsible for scope-filtering inputs.
      ``ensure_rows_in_scope`` is provided as a fail-closed guard.

Layer:
    domain/services
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.metrics import Metrics
from mend_safety.domain.entities.safety import Incident, MonthlyHoursRecord
from mend_safety.domain.enums.safety import IncidentCategory, Sufficiency
from mend_safety.domain.exceptions.safety import ScopeDenied
from mend_safety.domain.value_objects.reporting_month import ReportingMonth

__all__ = [
    "DEFAULT_MIN_MONTHLY_HOURS",
    "RATE_MULTIPLIER",
    "frequency_rate",
    "current_hours_records",
    "effective_hours_records",
    "compute_metrics",
    "ensure_rows_in_scope",
]

DEFAULT_MIN_MONTHLY_HOURS = Decimal(500)
RATE_MULTIPLIER = Decimal(1_000_000)
_TWO_PLACES = Decimal("0.01")


def frequency_rate(count: int, total_hours: Decimal) -> Decimal | None:
    """Return ``count`` per million hours, or ``None`` if no hours were worked."""
    if total_hours <= 0:
        return None
    return (Decimal(count) / total_hours * RATE_MULTIPLIER).quantize(
        _TWO_PLACES, rounding=ROUND_HALF_UP
    )


def current_hours_records(records: Iterable[MonthlyHoursRecord]) -> list[MonthlyHoursRecord]:
    """Collapse corrections to the latest record per (month, owner).

    Ties on ``recorded_at`` are broken on the hour figures so the result does
    not depend on row arrival order.

    Returns:
        Current records ordered by (month, employer_id, site_id).
    """
    latest: dict[tuple[ReportingMonth, int, int | None], MonthlyHoursRecord] = {}
    for record in records:
        key = (record.month, *record.owner_key)
        existing = latest.get(key)
        if existing is None or _record_order(record) > _record_order(existing):
            latest[key] = record
    return sorted(
        latest.values(),
        key=lambda r: (r.month, r.employer_id, -1 if r.site_id is None else r.site_id),
    )


def _record_order(record: MonthlyHoursRecord) -> tuple[object, ...]:
    return (record.recorded_at, record.total_hours, record.employer_hours)


def effective_hours_records(
    records: Iterable[MonthlyHoursRecord], month: ReportingMonth
) -> list[MonthlyHoursRecord]:
    """Return the records that count towards ``month``'s totals.

    Per employer, a current employer-level record supersedes the site-level
    records of the same month.
    """
    by_employer: dict[int, list[MonthlyHoursRecord]] = defaultdict(list)
    for record in current_hours_records(r for r in records if r.month == month):
        by_employer[record.employer_id].append(record)

    effective: list[MonthlyHoursRecord] = []
    for employer_id in sorted(by_employer):
        rows = by_employer[employer_id]
        employer_level = [r for r in rows if r.site_id is None]
        effective.extend(employer_level or rows)
    return effective


def compute_metrics(
    *,
    month: ReportingMonth,
    incidents: Iterable[Incident],
    hours_records: Iterable[MonthlyHoursRecord],
    min_monthly_hours: Decimal = DEFAULT_MIN_MONTHLY_HOURS,
) -> Metrics:
    """Compute frequency rates for one month.

    Args:
        month: Reporting month. Rows for other months are ignored.
        incidents: Scope-filtered incidents.
        hours_records: Scope-filtered hours records, corrections included.
        min_monthly_hours: Threshold below which the period is insufficient.

    Returns:
        Metrics: Rates, totals and the sufficiency tag for ``month``.
    """
    counted = effective_hours_records(hours_records, month)
    employer_hours = sum((r.employer_hours for r in counted), Decimal(0))
    subcontractor_hours = sum((r.subcontractor_hours for r in counted), Decimal(0))
    total_hours = employer_hours + subcontractor_hours

    in_month = [i for i in incidents if month.contains(i.occurred_on)]
    counts: Counter[IncidentCategory] = Counter(i.category for i in in_month)
    days_lost = sum(i.days_lost for i in in_month)
    recordable = sum(n for category, n in counts.items() if category.is_recordable)

    sufficiency = (
        Sufficiency.SUFFICIENT if total_hours >= min_monthly_hours else Sufficiency.INSUFFICIENT
    )

    return Metrics(
        month=month,
        total_hours=total_hours,
        employer_hours=employer_hours,
        subcontractor_hours=subcontractor_hours,
        incident_counts=dict(counts),
        days_lost=days_lost,
        ltifr=frequency_rate(counts[IncidentCategory.LTI], total_hours),
        trifr=frequency_rate(recordable, total_hours),
        mtifr=frequency_rate(counts[IncidentCategory.MTI], total_hours),
        severity_rate=frequency_rate(days_lost, total_hours),
        sufficiency=sufficiency,
        sites_reporting=len({r.site_id for r in counted if r.site_id is not None}),
        has_estimated_hours=any(r.is_estimated for r in counted),
    )


def ensure_rows_in_scope(scope: ScopeDecision, employer_ids: Sequence[int]) -> None:
    """Fail closed if any row belongs to an employer outside ``scope``.

    Raises:
        ScopeDenied: If the scope is denied or a row falls outside it.
    """
    scope.require_readable()
    foreign = sorted({e for e in employer_ids if not scope.permits(e)})
    if foreign:
        raise ScopeDenied(
            "rows outside the resolved scope were returned",
            details={"scope": scope.describe(), "foreign_employer_count": len(foreign)},
        )
