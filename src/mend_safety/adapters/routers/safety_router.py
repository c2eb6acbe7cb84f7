# src/mend_safety/adapters/routers/safety_router.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Safety router (v1).

Synopsis:
    HTTP surface for scope, incidents, metrics, time series, site rankings and
    narrative reports. Every route resolves its scope through ``get_scope``
    before touching data; a denied scope never reaches a use case.

Design:
    * Month and window parameters are dependencies listed ahead of the scope,
      so malformed input is rejected before scope resolution.
    * Presentation-only: parses parameters, delegates to use cases, shapes
      the response with ``SafetyPresenter``.
    * Domain errors propagate to the global handlers, which map them to the
      standard error envelope.

Layer:
    adapters/routers
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, status

from mend_safety.adapters.presenters.safety_presenter import SafetyPresenter
from mend_safety.adapters.routers.base_router import BaseRouter
from mend_safety.adapters.schemas.http.envelopes import SuccessEnvelope
from mend_safety.adapters.schemas.http.safety_schemas import (
    IncidentHTTP,
    MetricsHTTP,
    ReportHTTP,
    ScopeHTTP,
    SeriesPointHTTP,
    SiteRankingsHTTP,
)
from mend_safety.application.use_cases.metrics.build_series import (
    BuildSeriesRequest,
    BuildSeriesUseCase,
)
from mend_safety.application.use_cases.metrics.compute_metrics import (
    ComputeMetricsRequest,
    ComputeMetricsUseCase,
)
from mend_safety.application.use_cases.metrics.list_incidents import (
    ListIncidentsRequest,
    ListIncidentsUseCase,
)
from mend_safety.application.use_cases.metrics.rank_sites import (
    RankSitesRequest,
    RankSitesUseCase,
)
from mend_safety.application.use_cases.reports.generate_report import (
    GenerateReportRequest,
    GenerateReportUseCase,
)
from mend_safety.dependencies.safety import (
    SeriesWindow,
    get_build_series_use_case,
    get_compute_metrics_use_case,
    get_generate_report_use_case,
    get_list_incidents_use_case,
    get_month,
    get_rank_sites_use_case,
    get_report_month,
    get_scope,
    get_series_window,
)
from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.value_objects.reporting_month import ReportingMonth

router = BaseRouter(version="v1", resource="safety", tags=["Safety"])
presenter = SafetyPresenter()

ScopeDep = Annotated[ScopeDecision, Depends(get_scope)]
MonthDep = Annotated[ReportingMonth, Depends(get_month)]


@router.get(
    "/scope",
    response_model=SuccessEnvelope[ScopeHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Resolve the effective employer scope",
)
async def get_scope_route(scope: ScopeDep) -> SuccessEnvelope[ScopeHTTP]:
    return presenter.scope(scope)


@router.get(
    "/incidents",
    response_model=SuccessEnvelope[list[IncidentHTTP]],
    responses=BaseRouter.std_error_responses(),
    summary="List incidents in scope for a month",
)
async def list_incidents(
    month: MonthDep,
    scope: ScopeDep,
    uc: Annotated[ListIncidentsUseCase, Depends(get_list_incidents_use_case)],
) -> SuccessEnvelope[list[IncidentHTTP]]:
    incidents = await uc.execute(ListIncidentsRequest(scope=scope, month=month))
    return presenter.incidents(incidents)


@router.get(
    "/metrics",
    response_model=SuccessEnvelope[MetricsHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Compute monthly frequency rates for the scope",
)
async def get_metrics(
    month: MonthDep,
    scope: ScopeDep,
    uc: Annotated[ComputeMetricsUseCase, Depends(get_compute_metrics_use_case)],
) -> SuccessEnvelope[MetricsHTTP]:
    metrics = await uc.execute(ComputeMetricsRequest(scope=scope, month=month))
    return presenter.metrics(metrics)


@router.get(
    "/time-series",
    response_model=SuccessEnvelope[list[SeriesPointHTTP]],
    responses=BaseRouter.std_error_responses(),
    summary="Month-ascending metrics series",
)
async def get_time_series(
    window: Annotated[SeriesWindow, Depends(get_series_window)],
    scope: ScopeDep,
    uc: Annotated[BuildSeriesUseCase, Depends(get_build_series_use_case)],
) -> SuccessEnvelope[list[SeriesPointHTTP]]:
    series = await uc.execute(
        BuildSeriesRequest(
            scope=scope, window_months=window.window_months, end_month=window.end_month
        )
    )
    return presenter.series(series)


@router.get(
    "/rankings",
    response_model=SuccessEnvelope[SiteRankingsHTTP],
    responses=BaseRouter.std_error_responses(),
    summary="Rank an employer's sites for a month",
)
async def get_rankings(
    month: MonthDep,
    scope: ScopeDep,
    uc: Annotated[RankSitesUseCase, Depends(get_rank_sites_use_case)],
) -> SuccessEnvelope[SiteRankingsHTTP]:
    rankings = await uc.execute(RankSitesRequest(scope=scope, month=month))
    return presenter.rankings(rankings)


@router.post(
    "/reports/{month}",
    response_model=SuccessEnvelope[ReportHTTP],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Get or generate the narrative report for a month",
    description=(
        "Returns the stored narrative when it is younger than the report TTL. "
        "Otherwise generates it once; concurrent callers for the same employer "
        "and month share a single generation."
    ),
)
async def post_report(
    month: Annotated[ReportingMonth, Depends(get_report_month)],
    scope: ScopeDep,
    uc: Annotated[GenerateReportUseCase, Depends(get_generate_report_use_case)],
) -> SuccessEnvelope[ReportHTTP]:
    employer_id = scope.require_single_employer()
    result = await uc.execute(GenerateReportRequest(scope=scope, month=month))
    return presenter.report(employer_id, month, result)
