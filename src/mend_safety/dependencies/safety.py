# src/mend_safety/dependencies/safety.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Dependency wiring for the safety routes (stores, use cases, scope).

Overview:
    FastAPI dependency providers for the safety use cases. Routers only
    depend on these providers; tests override them with in-memory fakes via
    ``app.dependency_overrides``.

Layer:
    dependencies

Design:
    * Store and context adapters are cheap per-request wrappers over the
      process-wide sessionmaker and Redis client.
    * The report cache is process-wide and read from ``app.state``.
    * ``get_scope`` is the single authorization point for every data route.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Query, Request

from mend_safety.adapters.repositories.safety_store_repository import SqlAlchemySafetyStore
from mend_safety.application.interfaces.context_store_port import ContextStorePort
from mend_safety.application.services.report_cache import ReportCache
from mend_safety.application.use_cases.access.employer_context import EmployerContextService
from mend_safety.application.use_cases.access.resolve_scope import (
    ResolveScopeRequest,
    ResolveScopeUseCase,
)
from mend_safety.application.use_cases.metrics.build_series import BuildSeriesUseCase
from mend_safety.application.use_cases.metrics.compute_metrics import ComputeMetricsUseCase
from mend_safety.application.use_cases.metrics.list_incidents import ListIncidentsUseCase
from mend_safety.application.use_cases.metrics.rank_sites import RankSitesUseCase
from mend_safety.application.use_cases.reports.generate_report import GenerateReportUseCase
from mend_safety.config.settings import RoleConfig, Settings, get_settings
from mend_safety.domain.entities.access import IdentityClaims, Role, ScopeDecision
from mend_safety.domain.exceptions.safety import InvalidInput, UpstreamUnavailable
from mend_safety.domain.interfaces.repositories.safety_store import SafetyStore
from mend_safety.domain.services.scope_resolver import RoleRegistry
from mend_safety.domain.services.time_series_builder import validate_window
from mend_safety.domain.value_objects.identifiers import optional_positive_id
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from mend_safety.infrastructure.auth.identity import require_identity
from mend_safety.infrastructure.caching.context_store import RedisContextStore
from mend_safety.infrastructure.resilience.retry import RetryPolicy

SettingsDep = Annotated[Settings, Depends(get_settings)]


@dataclass(frozen=True)
class SeriesWindow:
    window_months: int
    end_month: ReportingMonth | None


@lru_cache(maxsize=8)
def _registry_for(roles: tuple[RoleConfig, ...]) -> RoleRegistry:
    return RoleRegistry(
        Role(role_id=r.role_id, name=r.name, capability=r.capability) for r in roles
    )


def get_role_registry(settings: SettingsDep) -> RoleRegistry:
    return _registry_for(tuple(settings.roles))


def get_safety_store(settings: SettingsDep) -> SafetyStore:
    import mend_safety.infrastructure.database.session as db_session

    return SqlAlchemySafetyStore(
        db_session.get_sessionmaker(),
        policy=RetryPolicy.from_settings(settings),
        timeout_s=settings.upstream_timeout_s,
    )


def get_context_store(settings: SettingsDep) -> ContextStorePort:
    import mend_safety.infrastructure.caching.redis_client as redis_client

    return RedisContextStore(
        redis_client.get_redis_client(),
        ttl_s=settings.session_context_ttl_s,
        policy=RetryPolicy.from_settings(settings),
        timeout_s=settings.redis_socket_timeout_s,
    )


def get_report_cache(request: Request) -> ReportCache:
    cache: ReportCache | None = getattr(request.app.state, "report_cache", None)
    if cache is None:
        raise UpstreamUnavailable("report cache is not initialized")
    return cache


# --------------------------------------------------------------------------- #
# Use cases                                                                   #
# --------------------------------------------------------------------------- #
def get_resolve_scope_use_case(
    registry: Annotated[RoleRegistry, Depends(get_role_registry)],
    context_store: Annotated[ContextStorePort, Depends(get_context_store)],
) -> ResolveScopeUseCase:
    return ResolveScopeUseCase(registry, context_store)


def get_employer_context_service(
    registry: Annotated[RoleRegistry, Depends(get_role_registry)],
    context_store: Annotated[ContextStorePort, Depends(get_context_store)],
) -> EmployerContextService:
    return EmployerContextService(registry, context_store)


def get_list_incidents_use_case(
    store: Annotated[SafetyStore, Depends(get_safety_store)],
) -> ListIncidentsUseCase:
    return ListIncidentsUseCase(store)


def get_compute_metrics_use_case(
    store: Annotated[SafetyStore, Depends(get_safety_store)], settings: SettingsDep
) -> ComputeMetricsUseCase:
    return ComputeMetricsUseCase(store, min_monthly_hours=settings.min_monthly_hours)


def get_build_series_use_case(
    store: Annotated[SafetyStore, Depends(get_safety_store)], settings: SettingsDep
) -> BuildSeriesUseCase:
    return BuildSeriesUseCase(store, min_monthly_hours=settings.min_monthly_hours)


def get_rank_sites_use_case(
    store: Annotated[SafetyStore, Depends(get_safety_store)], settings: SettingsDep
) -> RankSitesUseCase:
    return RankSitesUseCase(store, min_monthly_hours=settings.min_monthly_hours)


def get_generate_report_use_case(
    cache: Annotated[ReportCache, Depends(get_report_cache)],
) -> GenerateReportUseCase:
    return GenerateReportUseCase(cache)


# --------------------------------------------------------------------------- #
# Request parameters                                                          #
# --------------------------------------------------------------------------- #
# Routes list these before the scope dependency so malformed input is rejected
# without a context read or a scope decision.
def get_month(
    month: Annotated[str, Query(description="Reporting month (YYYY-MM).", examples=["2025-03"])],
) -> ReportingMonth:
    return ReportingMonth.parse(month)


def get_report_month(month: str) -> ReportingMonth:
    """Path variant of :func:`get_month` for ``/reports/{month}``."""
    return ReportingMonth.parse(month)


def get_series_window(
    months: Annotated[int, Query(description="Window size in months (1..24).")] = 6,
    end_month: Annotated[
        str | None, Query(description="Last month of the window; defaults to the current month.")
    ] = None,
) -> SeriesWindow:
    return SeriesWindow(
        window_months=validate_window(months),
        end_month=ReportingMonth.parse(end_month) if end_month else None,
    )


# --------------------------------------------------------------------------- #
# Scope                                                                       #
# --------------------------------------------------------------------------- #
def parse_employer_id(raw: str | None) -> int | None:
    """Parse the optional ``employer_id`` query value.

    Raises:
        InvalidInput: If the value is not a positive integer.
    """
    if raw is None or raw == "":
        return None
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise InvalidInput("employer_id must be a positive integer", details={"employer_id": raw})
    return optional_positive_id(int(text), field="employer_id")


async def get_scope(
    identity: Annotated[IdentityClaims, Depends(require_identity)],
    uc: Annotated[ResolveScopeUseCase, Depends(get_resolve_scope_use_case)],
    employer_id: Annotated[
        str | None, Query(description="Optional employer filter; ignored for tenant roles.")
    ] = None,
) -> ScopeDecision:
    """Resolve the request's effective scope; raises ``ScopeDenied`` when denied."""
    return await uc.execute(
        ResolveScopeRequest(identity=identity, requested_employer_id=parse_employer_id(employer_id))
    )
