# src/mend_safety/domain/entities/metrics.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Derived safety metrics, series points and site rankings.

Purpose:
    Ephemeral values computed from scope-filtered rows. None of these are
    persisted by this core.

Design:
    - Rates are ``Decimal`` rounded to two places, or ``None`` when no hours
      were worked (a rate of zero would be a lie).
    - ``Metrics.comparable`` is the only accessor comparative code (averages,
      charts) should use: it hides rates of insufficient periods.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from mend_safety.domain.enums.safety import (
    IncidentCategory,
    RankingMetric,
    RateMetric,
    Sufficiency,
)
from mend_safety.domain.value_objects.reporting_month import ReportingMonth

__all__ = ["Metrics", "SeriesPoint", "SiteRank", "SiteRankings"]


@dataclass(frozen=True)
class Metrics:
    """Frequency rates and totals for one scope and month.

    Attributes:
        month: Reporting month.
        total_hours: Employer plus subcontractor hours (current records only).
        employer_hours: Hours worked by the employer's own workforce.
        subcontractor_hours: Hours worked by subcontractors.
        incident_counts: Count per incident category (all categories present).
        days_lost: Total working days lost across incidents.
        ltifr: Lost-time injury frequency rate per million hours.
        trifr: Total recordable injury frequency rate (LTI + MTI + FAI).
        mtifr: Medical treatment injury frequency rate.
        severity_rate: Days lost per million hours.
        sufficiency: SUFFICIENT when total hours meet the configured minimum.
        sites_reporting: Number of distinct sites with a current hours record.
        has_estimated_hours: True if any current hours record is an estimate.
    """

    month: ReportingMonth
    total_hours: Decimal
    employer_hours: Decimal
    subcontractor_hours: Decimal
    incident_counts: Mapping[IncidentCategory, int]
    days_lost: int
    ltifr: Decimal | None
    trifr: Decimal | None
    mtifr: Decimal | None
    severity_rate: Decimal | None
    sufficiency: Sufficiency
    sites_reporting: int = 0
    has_estimated_hours: bool = False

    def __post_init__(self) -> None:
        if self.total_hours < 0:
            raise ValueError("total_hours must be non-negative")
        counts = {
            category: int(self.incident_counts.get(category, 0)) for category in IncidentCategory
        }
        object.__setattr__(self, "incident_counts", MappingProxyType(counts))

    @property
    def is_sufficient(self) -> bool:
        return self.sufficiency is Sufficiency.SUFFICIENT

    @property
    def recordable_count(self) -> int:
        return sum(
            count for category, count in self.incident_counts.items() if category.is_recordable
        )

    @property
    def total_incidents(self) -> int:
        return sum(self.incident_counts.values())

    def rate(self, metric: RateMetric) -> Decimal | None:
        """Return the reported rate for ``metric`` regardless of sufficiency."""
        return {
            RateMetric.LTIFR: self.ltifr,
            RateMetric.TRIFR: self.trifr,
            RateMetric.MTIFR: self.mtifr,
            RateMetric.SEVERITY: self.severity_rate,
        }[metric]

    def comparable(self, metric: RateMetric) -> Decimal | None:
        """Return the rate for comparative use, or ``None`` if insufficient."""
        if not self.is_sufficient:
            return None
        return self.rate(metric)


@dataclass(frozen=True)
class SeriesPoint:
    """One month of a time series."""

    month: ReportingMonth
    metrics: Metrics

    def __post_init__(self) -> None:
        if self.metrics.month != self.month:
            raise ValueError("series point month must match its metrics month")


@dataclass(frozen=True)
class SiteRank:
    """Rank of one site for one metric.

    Attributes:
        site_id: Ranked site.
        rank: 1-based rank; 1 is best (lowest value).
        total_sites: Number of ranked sites for the employer and month.
        value: Metric value used for ordering, or ``None`` if not computable.
        insufficient: True when the site's hours were below the minimum.
    """

    site_id: int
    rank: int
    total_sites: int
    value: Decimal | None
    insufficient: bool

    def __post_init__(self) -> None:
        if not 1 <= self.rank <= self.total_sites:
            raise ValueError("rank must be within 1..total_sites")


@dataclass(frozen=True)
class SiteRankings:
    """Independent per-metric rankings for one employer and month."""

    employer_id: int
    month: ReportingMonth
    by_metric: Mapping[RankingMetric, tuple[SiteRank, ...]] = field(default_factory=dict)

    def ranks_for(self, metric: RankingMetric) -> tuple[SiteRank, ...]:
        return tuple(self.by_metric.get(metric, ()))

    def rank_of(self, site_id: int, metric: RankingMetric) -> int | None:
        for entry in self.ranks_for(metric):
            if entry.site_id == site_id:
                return entry.rank
        return None
