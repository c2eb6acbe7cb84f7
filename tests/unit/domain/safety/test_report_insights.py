# tests/unit/domain/safety/test_report_insights.py
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from mend_safety.domain.enums.safety import BenchmarkPerformance, IncidentCategory, RateMetric
from mend_safety.domain.services.metrics_aggregator import compute_metrics
from mend_safety.domain.services.report_insights import (
    assess_data_quality,
    benchmark_performance,
    benchmark_positions,
    change_pct,
    compare_months,
    injury_breakdown,
)
from testkit.safety import MARCH, hours, incident


@pytest.mark.parametrize(
    ("current", "previous", "expected"),
    [
        (Decimal("20.00"), Decimal("10.00"), Decimal("100.00")),
        (Decimal("5.00"), Decimal("10.00"), Decimal("-50.00")),
        (Decimal("10.00"), Decimal("0"), Decimal("0.00")),
        (None, Decimal("10.00"), None),
        (Decimal("10.00"), None, None),
    ],
)
def test_change_pct(current, previous, expected) -> None:
    assert change_pct(current, previous) == expected


@pytest.mark.parametrize(
    ("rate", "expected"),
    [
        (Decimal("3.19"), BenchmarkPerformance.ABOVE),
        (Decimal("3.20"), BenchmarkPerformance.AT),
        (Decimal("4.80"), BenchmarkPerformance.AT),
        (Decimal("4.81"), BenchmarkPerformance.BELOW),
    ],
)
def test_benchmark_performance_lower_is_better(rate: Decimal, expected) -> None:
    assert benchmark_performance(rate, Decimal("4.0")) is expected


def test_benchmark_positions_skip_insufficient_periods() -> None:
    thin = compute_metrics(
        month=MARCH,
        incidents=[incident(1, 81, 8, date(2025, 3, 2))],
        hours_records=[hours(8, 81, MARCH, 100)],
    )
    healthy = compute_metrics(
        month=MARCH,
        incidents=[incident(1, 81, 8, date(2025, 3, 2))],
        hours_records=[hours(8, 81, MARCH, 1_000_000)],
    )

    assert benchmark_positions(thin) == {}
    assert benchmark_positions(healthy)[RateMetric.LTIFR] is BenchmarkPerformance.ABOVE


def test_compare_months_and_data_quality() -> None:
    previous = compute_metrics(
        month=MARCH.previous(),
        incidents=[incident(1, 81, 8, date(2025, 2, 2))],
        hours_records=[hours(8, 81, MARCH.previous(), 100_000)],
    )
    current = compute_metrics(
        month=MARCH,
        incidents=[incident(2, 81, 8, date(2025, 3, 2)), incident(3, 81, 8, date(2025, 3, 3))],
        hours_records=[hours(8, 81, MARCH, 100_000, is_estimated=True)],
    )

    comparison = compare_months(current, previous)
    quality = assess_data_quality(current, total_sites=3)

    assert comparison.lti_change_pct == Decimal("100.00")
    assert comparison.hours_change_pct == Decimal("0.00")
    assert quality.has_estimated_hours
    assert (quality.total_sites, quality.sites_with_hours) == (3, 1)


def test_compare_months_skips_insufficient_periods() -> None:
    thin_previous = compute_metrics(
        month=MARCH.previous(),
        incidents=[incident(1, 81, 8, date(2025, 2, 2))],
        hours_records=[hours(8, 81, MARCH.previous(), 100)],
    )
    current = compute_metrics(
        month=MARCH,
        incidents=[incident(2, 81, 8, date(2025, 3, 2))],
        hours_records=[hours(8, 81, MARCH, 100_000)],
    )
    assert thin_previous.ltifr == Decimal("10000.00")

    comparison = compare_months(current, thin_previous)

    assert comparison.lti_change_pct is None
    assert comparison.trifr_change_pct is None
    assert comparison.hours_change_pct == Decimal("99900.00")


def test_compare_months_without_previous_data() -> None:
    empty = compute_metrics(month=MARCH.previous(), incidents=[], hours_records=[])
    current = compute_metrics(
        month=MARCH,
        incidents=[incident(2, 81, 8, date(2025, 3, 2))],
        hours_records=[hours(8, 81, MARCH, 100_000)],
    )

    comparison = compare_months(current, empty)

    assert comparison.lti_change_pct is None
    assert comparison.hours_change_pct is None


def test_injury_breakdown_most_common_first() -> None:
    rows = [
        incident(1, 81, 8, date(2025, 3, 1), injury_type="Sprain"),
        incident(2, 81, 8, date(2025, 3, 2), injury_type="Burn"),
        incident(3, 81, 8, date(2025, 3, 3), IncidentCategory.MTI, injury_type="Sprain"),
        incident(4, 81, 8, date(2025, 3, 4)),
    ]

    assert injury_breakdown(rows) == (("Sprain", 2), ("Burn", 1), ("unspecified", 1))
