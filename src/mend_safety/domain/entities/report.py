# src/mend_safety/domain/entities/report.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Generated report entities and narrative generator input.

Purpose:
    ``GeneratedReport`` is the only entity this core writes. It carries the
    current narrative for an (employer, month) key plus its revision history.
    ``NarrativeRequest`` is the input contract of the narrative generator.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from mend_safety.domain.entities.metrics import Metrics, SeriesPoint
from mend_safety.domain.enums.safety import BenchmarkPerformance, RateMetric
from mend_safety.domain.value_objects.reporting_month import ReportingMonth

__all__ = [
    "ReportRevision",
    "GeneratedReport",
    "ReportResult",
    "MonthComparison",
    "DataQuality",
    "NarrativeRequest",
]


@dataclass(frozen=True)
class ReportRevision:
    """One historical narrative for a report key."""

    text: str
    generated_at: datetime


@dataclass(frozen=True)
class GeneratedReport:
    """Persisted narrative for one employer and month.

    Attributes:
        employer_id: Owning employer.
        month: Reporting month.
        text: Current narrative text.
        generated_at: When the current narrative was generated (UTC).
        history: All revisions, oldest first, including the current one.
    """

    employer_id: int
    month: ReportingMonth
    text: str
    generated_at: datetime
    history: tuple[ReportRevision, ...] = ()

    def __post_init__(self) -> None:
        if self.generated_at.tzinfo is None:
            raise ValueError("generated_at must be timezone-aware")

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        """Return True if the report was generated less than ``ttl`` ago."""
        return now - self.generated_at < ttl

    def with_revision(self, text: str, generated_at: datetime) -> GeneratedReport:
        """Return a copy holding ``text`` as current, appended to the history."""
        return GeneratedReport(
            employer_id=self.employer_id,
            month=self.month,
            text=text,
            generated_at=generated_at,
            history=(*self.history, ReportRevision(text=text, generated_at=generated_at)),
        )

    @classmethod
    def first(
        cls, employer_id: int, month: ReportingMonth, text: str, generated_at: datetime
    ) -> GeneratedReport:
        return cls(
            employer_id=employer_id,
            month=month,
            text=text,
            generated_at=generated_at,
            history=(ReportRevision(text=text, generated_at=generated_at),),
        )


@dataclass(frozen=True)
class ReportResult:
    """Value returned by the report cache."""

    text: str
    cached: bool
    generated_at: datetime


@dataclass(frozen=True)
class MonthComparison:
    """Change of the current month against the previous one, in percent.

    Rate changes are ``None`` when either month is insufficient or has no rate.
    """

    lti_change_pct: Decimal | None
    trifr_change_pct: Decimal | None
    hours_change_pct: Decimal | None


@dataclass(frozen=True)
class DataQuality:
    """Completeness indicators for the reported month."""

    has_estimated_hours: bool
    total_sites: int
    sites_with_hours: int


@dataclass(frozen=True)
class NarrativeRequest:
    """Input to the narrative generator.

    Attributes:
        employer_id: Employer the report is for.
        employer_name: Display name, if known.
        month: Reporting month.
        metrics: Metrics for ``month``.
        series: Recent month-ascending series ending at ``month``.
        comparison: Change against the previous month.
        benchmarks: Benchmark position per rate (sufficient periods only).
        data_quality: Completeness indicators.
        injury_breakdown: (injury type, count) pairs for the month, most common first.
    """

    employer_id: int
    employer_name: str | None
    month: ReportingMonth
    metrics: Metrics
    series: tuple[SeriesPoint, ...]
    comparison: MonthComparison
    benchmarks: dict[RateMetric, BenchmarkPerformance] = field(default_factory=dict)
    data_quality: DataQuality | None = None
    injury_breakdown: tuple[tuple[str, int], ...] = ()
