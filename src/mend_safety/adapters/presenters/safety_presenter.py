# src/mend_safety/adapters/presenters/safety_presenter.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Safety presenter.

Purpose:
    Map domain results to HTTP schemas wrapped in ``SuccessEnvelope``.
    No business decisions are made here.

Layer:
    adapters/presenters
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from mend_safety.adapters.schemas.http.envelopes import SuccessEnvelope
from mend_safety.adapters.schemas.http.safety_schemas import (
    EmployerContextHTTP,
    IncidentHTTP,
    MetricsHTTP,
    ReportHTTP,
    ScopeHTTP,
    SeriesPointHTTP,
    SiteRankHTTP,
    SiteRankingsHTTP,
)
from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.metrics import Metrics, SeriesPoint, SiteRankings
from mend_safety.domain.entities.report import ReportResult
from mend_safety.domain.entities.safety import Incident
from mend_safety.domain.value_objects.reporting_month import ReportingMonth


def scope_to_http(scope: ScopeDecision) -> ScopeHTTP:
    return ScopeHTTP(kind=scope.kind, employer_id=scope.employer_id)


def incident_to_http(incident: Incident) -> IncidentHTTP:
    return IncidentHTTP(
        incident_id=incident.incident_id,
        site_id=incident.site_id,
        employer_id=incident.employer_id,
        occurred_on=incident.occurred_on,
        category=incident.category,
        days_lost=incident.days_lost,
        injury_type=incident.injury_type,
    )


def metrics_to_http(metrics: Metrics) -> MetricsHTTP:
    return MetricsHTTP(
        month=str(metrics.month),
        total_hours=metrics.total_hours,
        employer_hours=metrics.employer_hours,
        subcontractor_hours=metrics.subcontractor_hours,
        incident_counts={c.value: n for c, n in metrics.incident_counts.items()},
        days_lost=metrics.days_lost,
        ltifr=metrics.ltifr,
        trifr=metrics.trifr,
        mtifr=metrics.mtifr,
        severity_rate=metrics.severity_rate,
        sufficiency=metrics.sufficiency,
        sites_reporting=metrics.sites_reporting,
        has_estimated_hours=metrics.has_estimated_hours,
    )


def rankings_to_http(rankings: SiteRankings) -> SiteRankingsHTTP:
    return SiteRankingsHTTP(
        employer_id=rankings.employer_id,
        month=str(rankings.month),
        rankings={
            metric.value: [
                SiteRankHTTP(
                    site_id=r.site_id,
                    rank=r.rank,
                    total_sites=r.total_sites,
                    value=r.value,
                    insufficient=r.insufficient,
                )
                for r in ranks
            ]
            for metric, ranks in rankings.by_metric.items()
        },
    )


class SafetyPresenter:
    """Build success envelopes for the safety routes."""

    def scope(self, scope: ScopeDecision) -> SuccessEnvelope[ScopeHTTP]:
        return SuccessEnvelope[ScopeHTTP](data=scope_to_http(scope))

    def incidents(self, incidents: Iterable[Incident]) -> SuccessEnvelope[list[IncidentHTTP]]:
        return SuccessEnvelope[list[IncidentHTTP]](data=[incident_to_http(i) for i in incidents])

    def metrics(self, metrics: Metrics) -> SuccessEnvelope[MetricsHTTP]:
        return SuccessEnvelope[MetricsHTTP](data=metrics_to_http(metrics))

    def series(self, series: Sequence[SeriesPoint]) -> SuccessEnvelope[list[SeriesPointHTTP]]:
        return SuccessEnvelope[list[SeriesPointHTTP]](
            data=[
                SeriesPointHTTP(month=str(p.month), metrics=metrics_to_http(p.metrics))
                for p in series
            ]
        )

    def rankings(self, rankings: SiteRankings) -> SuccessEnvelope[SiteRankingsHTTP]:
        return SuccessEnvelope[SiteRankingsHTTP](data=rankings_to_http(rankings))

    def report(
        self, employer_id: int, month: ReportingMonth, result: ReportResult
    ) -> SuccessEnvelope[ReportHTTP]:
        return SuccessEnvelope[ReportHTTP](
            data=ReportHTTP(
                employer_id=employer_id,
                month=str(month),
                text=result.text,
                cached=result.cached,
                generated_at=result.generated_at,
            )
        )

    def context(self, employer_id: int | None) -> SuccessEnvelope[EmployerContextHTTP]:
        return SuccessEnvelope[EmployerContextHTTP](
            data=EmployerContextHTTP(employer_id=employer_id)
        )
