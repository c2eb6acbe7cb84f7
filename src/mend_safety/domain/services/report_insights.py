# src/mend_safety/domain/services/report_insights.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Benchmarks, month-over-month change and data quality for reports.

Layer:
    domain/services
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType

from mend_safety.domain.entities.metrics import Metrics
from mend_safety.domain.entities.report import DataQuality, MonthComparison
from mend_safety.domain.entities.safety import Incident
from mend_safety.domain.enums.safety import BenchmarkPerformance, RateMetric

__all__ = [
    "INDUSTRY_BENCHMARKS",
    "change_pct",
    "benchmark_performance",
    "benchmark_positions",
    "compare_months",
    "assess_data_quality",
    "injury_breakdown",
]

# Construction industry reference rates per million hours.
INDUSTRY_BENCHMARKS = MappingProxyType(
    {
        RateMetric.LTIFR: Decimal("4.0"),
        RateMetric.TRIFR: Decimal("10.0"),
        RateMetric.MTIFR: Decimal("6.0"),
    }
)

_BETTER_FACTOR = Decimal("0.8")
_WORSE_FACTOR = Decimal("1.2")


def change_pct(current: Decimal | None, previous: Decimal | None) -> Decimal | None:
    """Percentage change from ``previous`` to ``current``.

    Returns ``None`` when either side is missing and 0 when the baseline is 0.
    """
    if current is None or previous is None:
        return None
    if previous == 0:
        return Decimal("0.00")
    return ((current - previous) / previous * 100).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )


def benchmark_performance(rate: Decimal, benchmark: Decimal) -> BenchmarkPerformance:
    """Classify a rate against a benchmark (lower rates perform better)."""
    if rate < benchmark * _BETTER_FACTOR:
        return BenchmarkPerformance.ABOVE
    if rate > benchmark * _WORSE_FACTOR:
        return BenchmarkPerformance.BELOW
    return BenchmarkPerformance.AT


def benchmark_positions(metrics: Metrics) -> dict[RateMetric, BenchmarkPerformance]:
    """Benchmark position per rate; insufficient periods are not classified."""
    positions: dict[RateMetric, BenchmarkPerformance] = {}
    for metric, benchmark in INDUSTRY_BENCHMARKS.items():
        rate = metrics.comparable(metric)
        if rate is not None:
            positions[metric] = benchmark_performance(rate, benchmark)
    return positions


def compare_months(current: Metrics, previous: Metrics) -> MonthComparison:
    """Month-over-month change; rate changes need both periods comparable."""
    return MonthComparison(
        lti_change_pct=change_pct(
            current.comparable(RateMetric.LTIFR), previous.comparable(RateMetric.LTIFR)
        ),
        trifr_change_pct=change_pct(
            current.comparable(RateMetric.TRIFR), previous.comparable(RateMetric.TRIFR)
        ),
        hours_change_pct=change_pct(current.total_hours, previous.total_hours or None),
    )


def assess_data_quality(metrics: Metrics, total_sites: int) -> DataQuality:
    return DataQuality(
        has_estimated_hours=metrics.has_estimated_hours,
        total_sites=total_sites,
        sites_with_hours=metrics.sites_reporting,
    )


def injury_breakdown(incidents: Iterable[Incident]) -> tuple[tuple[str, int], ...]:
    """Count incidents by injury type, most common first (ties by name)."""
    counts = Counter(i.injury_type or "unspecified" for i in incidents)
    return tuple(sorted(counts.items(), key=lambda item: (-item[1], item[0])))
