# src/mend_safety/dependencies/core/bootstrap.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Core bootstrap for infrastructure (DB, Redis, HTTP, report cache).

This module owns the lifecycle of shared infrastructure used by the FastAPI
app. Configuration is read from Settings and all heavy lifting is delegated
to the infrastructure modules.

The single public surface is :func:`bootstrap`, an async context manager that
yields the process-wide state, including the one ``ReportCache`` instance
whose in-flight map must be shared by every request.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta

import httpx
from fastapi import FastAPI

from mend_safety.adapters.repositories.generated_reports_repository import (
    SqlAlchemyGeneratedReportsRepository,
)
from mend_safety.adapters.repositories.safety_store_repository import SqlAlchemySafetyStore
from mend_safety.application.services.report_cache import ReportCache
from mend_safety.config.settings import Settings, get_settings
from mend_safety.domain.interfaces.gateways.narrative_generator import NarrativeGenerator
from mend_safety.infrastructure.caching.report_lock import RedisReportLock
from mend_safety.infrastructure.external_apis.narrative.client import HttpNarrativeGenerator
from mend_safety.infrastructure.external_apis.narrative.template import (
    TemplateNarrativeGenerator,
)
from mend_safety.infrastructure.logging.logger import get_json_logger
from mend_safety.infrastructure.resilience.retry import RetryPolicy

logger = get_json_logger(__name__)


@dataclass
class BootstrapState:
    """State yielded by the bootstrap context manager."""

    settings: Settings
    http_client: httpx.AsyncClient
    report_cache: ReportCache


def build_narrative_generator(settings: Settings, http: httpx.AsyncClient) -> NarrativeGenerator:
    """Return the HTTP generator when configured, otherwise the template one."""
    if settings.narrative_enabled:
        return HttpNarrativeGenerator.from_settings(settings, http)
    return TemplateNarrativeGenerator()


def build_report_cache(settings: Settings, http: httpx.AsyncClient) -> ReportCache:
    """Wire the report cache against the current DB sessionmaker and Redis client."""
    import mend_safety.infrastructure.caching.redis_client as redis_client
    import mend_safety.infrastructure.database.session as db_session

    policy = RetryPolicy.from_settings(settings)
    sessionmaker = db_session.get_sessionmaker()
    return ReportCache(
        repository=SqlAlchemyGeneratedReportsRepository(
            sessionmaker, policy=policy, timeout_s=settings.upstream_timeout_s
        ),
        generator=build_narrative_generator(settings, http),
        store=SqlAlchemySafetyStore(
            sessionmaker, policy=policy, timeout_s=settings.upstream_timeout_s
        ),
        ttl=timedelta(seconds=settings.report_ttl_s),
        lock=RedisReportLock(
            redis_client.get_redis_client(),
            policy=policy,
            timeout_s=settings.redis_socket_timeout_s,
        ),
        lock_ttl_s=settings.report_lock_ttl_s,
        wait_timeout_s=settings.report_wait_timeout_s,
        min_monthly_hours=settings.min_monthly_hours,
    )


@asynccontextmanager
async def bootstrap(app: FastAPI) -> AsyncGenerator[BootstrapState, None]:
    """Initialize and tear down shared infrastructure.

    Responsibilities:
        * Load application settings.
        * Initialize DB engine/sessionmaker and the Redis client.
        * Create a shared HTTPX AsyncClient.
        * Build the process-wide report cache and expose it on ``app.state``.
        * Ensure all of the above are shut down on exit, even on error.

    Yields:
        BootstrapState: Resolved settings, HTTP client and report cache.
    """
    settings: Settings = get_settings()
    logger.info("bootstrap.start", extra={"extra": {"environment": settings.environment.value}})

    # Imported here so tests can monkeypatch their functions.
    import mend_safety.infrastructure.caching.redis_client as redis_client
    import mend_safety.infrastructure.database.session as db_session

    db_session.init_engine_and_sessionmaker(settings)
    redis_client.init_redis(settings)

    http_client = httpx.AsyncClient(timeout=settings.narrative_timeout_s)
    state = BootstrapState(
        settings=settings,
        http_client=http_client,
        report_cache=build_report_cache(settings, http_client),
    )
    app.state.report_cache = state.report_cache

    try:
        yield state
    finally:
        try:
            await http_client.aclose()
        except Exception:
            logger.exception("bootstrap.http_client_close_failed")

        try:
            await redis_client.close_redis()
        except Exception:
            logger.exception("bootstrap.redis_close_failed")

        try:
            await db_session.dispose_engine()
        except Exception:
            logger.exception("bootstrap.db_dispose_failed")

        logger.info("bootstrap.stop")
