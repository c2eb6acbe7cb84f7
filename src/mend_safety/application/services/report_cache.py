# src/mend_safety/application/services/report_cache.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Single-writer report cache.

Purpose:
    Serve the narrative safety report for an (employer, month) key, calling
    the external narrative generator at most once per cache miss.

Design:
    - Hit: a stored report younger than the TTL is returned with
      ``cached=True``.
    - Miss, in-process: all concurrent callers for a key share one asyncio
      task. Callers await it through ``asyncio.shield`` so that cancelling
      any caller (including the one that started it) never aborts the
      generation; the remaining waiters still receive its result.
    - Miss, cross-process: the task takes a redis lock before generating.
      After acquiring it re-reads the store and serves a report another
      writer stored in the meantime. A task that cannot take the lock waits
      for the holder's stored result and never generates without the lock;
      if nothing appears within the wait timeout it raises
      ``UpstreamUnavailable``.
    - While generating, the holder extends the lock every third of its TTL,
      so a slow store or generator cannot let the lock lapse mid-generation.
    - Each generation appends a revision to the report history.

Layer:
    application/services
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from mend_safety.application.interfaces.report_lock_port import ReportLockPort
from mend_safety.application.services.scoped_rows import ScopedRowsLoader
from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.report import GeneratedReport, NarrativeRequest, ReportResult
from mend_safety.domain.exceptions.safety import UpstreamUnavailable
from mend_safety.domain.interfaces.gateways.narrative_generator import NarrativeGenerator
from mend_safety.domain.interfaces.repositories.generated_reports_repository import (
    GeneratedReportsRepository,
)
from mend_safety.domain.interfaces.repositories.safety_store import SafetyStore
from mend_safety.domain.services.metrics_aggregator import (
    DEFAULT_MIN_MONTHLY_HOURS,
    compute_metrics,
)
from mend_safety.domain.services.report_insights import (
    assess_data_quality,
    benchmark_positions,
    compare_months,
    injury_breakdown,
)
from mend_safety.domain.services.time_series_builder import build_series
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from mend_safety.infrastructure.logging.logger import get_json_logger
from mend_safety.infrastructure.observability.metrics import (
    get_narrative_latency_seconds,
    get_report_cache_events_total,
)

logger: logging.Logger = get_json_logger(__name__)

REPORT_SERIES_MONTHS = 6

_Key = tuple[int, ReportingMonth]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _count(outcome: str) -> None:
    with suppress(Exception):
        get_report_cache_events_total().labels(outcome=outcome).inc()


@dataclass(frozen=True)
class _Outcome:
    report: GeneratedReport
    generated: bool


class ReportCache:
    """Get-or-generate narrative reports with one writer per key."""

    def __init__(
        self,
        *,
        repository: GeneratedReportsRepository,
        generator: NarrativeGenerator,
        store: SafetyStore,
        ttl: timedelta = timedelta(hours=24),
        lock: ReportLockPort | None = None,
        lock_ttl_s: int = 120,
        wait_timeout_s: float = 60.0,
        poll_interval_s: float = 0.5,
        min_monthly_hours: Decimal = DEFAULT_MIN_MONTHLY_HOURS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._generator = generator
        self._store = store
        self._loader = ScopedRowsLoader(store)
        self._ttl = ttl
        self._lock = lock
        self._lock_ttl_s = lock_ttl_s
        self._lock_renew_interval_s = lock_ttl_s / 3
        self._wait_timeout_s = wait_timeout_s
        self._poll_interval_s = poll_interval_s
        self._min_monthly_hours = min_monthly_hours
        self._clock = clock
        self._inflight: dict[_Key, asyncio.Task[_Outcome]] = {}

    @property
    def inflight_keys(self) -> frozenset[_Key]:
        return frozenset(self._inflight)

    async def get_or_generate_report(
        self, scope: ScopeDecision, month: ReportingMonth
    ) -> ReportResult:
        """Return the report for the scope's employer and ``month``.

        Args:
            scope: Resolved single-employer scope.
            month: Reporting month.

        Returns:
            ReportResult: Text, whether it was served from cache, and its timestamp.

        Raises:
            ScopeDenied: If the scope is denied.
            InvalidInput: If the scope spans all employers.
            UpstreamUnavailable: If the store, lock or generator fails.
        """
        employer_id = scope.require_single_employer()
        key: _Key = (employer_id, month)

        existing = await self._repository.get(employer_id, month)
        if existing is not None and existing.is_fresh(self._clock(), self._ttl):
            _count("hit")
            logger.info(
                "report_cache.hit",
                extra={"extra": {"employer_id": employer_id, "month": str(month)}},
            )
            return ReportResult(
                text=existing.text, cached=True, generated_at=existing.generated_at
            )

        task = self._inflight.get(key)
        started_here = task is None
        if task is None:
            _count("miss")
            task = asyncio.create_task(
                self._generate_exclusive(employer_id, month),
                name=f"report:{employer_id}:{month}",
            )
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._forget, key))
        else:
            _count("joined")
            logger.info(
                "report_cache.joined",
                extra={"extra": {"employer_id": employer_id, "month": str(month)}},
            )

        outcome = await asyncio.shield(task)
        return ReportResult(
            text=outcome.report.text,
            cached=not (started_here and outcome.generated),
            generated_at=outcome.report.generated_at,
        )

    def _forget(self, key: _Key, task: asyncio.Task[_Outcome]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the exception retrieved when every waiter was cancelled.
        if not task.cancelled() and task.exception() is not None:
            logger.warning(
                "report_cache.generation_failed",
                extra={
                    "extra": {
                        "employer_id": key[0],
                        "month": str(key[1]),
                        "exc_type": type(task.exception()).__name__,
                    }
                },
            )

    async def _generate_exclusive(self, employer_id: int, month: ReportingMonth) -> _Outcome:
        if self._lock is None:
            return await self._generate_if_stale(employer_id, month)

        lock_key = f"{employer_id}:{month}"
        token = await self._lock.try_acquire(lock_key, ttl_s=self._lock_ttl_s)
        if token is None:
            return await self._await_other_writer(employer_id, month, lock_key)
        return await self._generate_holding(employer_id, month, lock_key, token)

    async def _generate_holding(
        self, employer_id: int, month: ReportingMonth, lock_key: str, token: str
    ) -> _Outcome:
        assert self._lock is not None
        renewal = asyncio.create_task(
            self._keep_lock(lock_key, token), name=f"report-lock-renewal:{lock_key}"
        )
        try:
            return await self._generate_if_stale(employer_id, month)
        finally:
            renewal.cancel()
            await asyncio.gather(renewal, return_exceptions=True)
            try:
                await self._lock.release(lock_key, token)
            except UpstreamUnavailable:
                # The lock expires on its own after lock_ttl_s.
                logger.warning(
                    "report_cache.lock_release_failed", extra={"extra": {"key": lock_key}}
                )

    async def _keep_lock(self, lock_key: str, token: str) -> None:
        assert self._lock is not None
        while True:
            await asyncio.sleep(self._lock_renew_interval_s)
            try:
                held = await self._lock.extend(lock_key, token, ttl_s=self._lock_ttl_s)
            except UpstreamUnavailable:
                # Retried on the next tick while the current expiry holds.
                logger.warning(
                    "report_cache.lock_renew_failed", extra={"extra": {"key": lock_key}}
                )
                continue
            if not held:
                _count("lock_lost")
                logger.warning("report_cache.lock_lost", extra={"extra": {"key": lock_key}})
                return

    async def _await_other_writer(
        self, employer_id: int, month: ReportingMonth, lock_key: str
    ) -> _Outcome:
        assert self._lock is not None
        _count("lock_wait")
        logger.info(
            "report_cache.lock_wait",
            extra={"extra": {"employer_id": employer_id, "month": str(month)}},
        )
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._wait_timeout_s
        while loop.time() < deadline:
            await asyncio.sleep(self._poll_interval_s)
            stored = await self._repository.get(employer_id, month)
            if stored is not None and stored.is_fresh(self._clock(), self._ttl):
                return _Outcome(report=stored, generated=False)
            # The holder may have finished without storing (failure or expiry).
            token = await self._lock.try_acquire(lock_key, ttl_s=self._lock_ttl_s)
            if token is not None:
                return await self._generate_holding(employer_id, month, lock_key, token)

        raise UpstreamUnavailable(
            "report generation in progress elsewhere did not complete in time",
            details={"employer_id": employer_id, "month": str(month)},
        )

    async def _generate_if_stale(self, employer_id: int, month: ReportingMonth) -> _Outcome:
        existing = await self._repository.get(employer_id, month)
        if existing is not None and existing.is_fresh(self._clock(), self._ttl):
            return _Outcome(report=existing, generated=False)

        request = await self._build_request(employer_id, month)

        logger.info(
            "report_cache.generate.start",
            extra={"extra": {"employer_id": employer_id, "month": str(month)}},
        )
        started = time.perf_counter()
        text = await self._generator.generate(request)
        elapsed = time.perf_counter() - started
        with suppress(Exception):
            get_narrative_latency_seconds().labels(
                generator=type(self._generator).__name__
            ).observe(elapsed)

        generated_at = self._clock()
        report = (
            existing.with_revision(text, generated_at)
            if existing is not None
            else GeneratedReport.first(employer_id, month, text, generated_at)
        )
        await self._repository.save(report)

        logger.info(
            "report_cache.generate.success",
            extra={
                "extra": {
                    "employer_id": employer_id,
                    "month": str(month),
                    "revisions": len(report.history),
                    "elapsed_ms": round(elapsed * 1000, 1),
                }
            },
        )
        return _Outcome(report=report, generated=True)

    async def _build_request(self, employer_id: int, month: ReportingMonth) -> NarrativeRequest:
        scope = ScopeDecision.for_employer(employer_id)
        window = ReportingMonth.window(month, REPORT_SERIES_MONTHS)
        rows = await self._loader.load(scope, window)
        employer = await self._store.get_employer(scope)
        sites = await self._store.list_sites(scope)

        current = compute_metrics(
            month=month,
            incidents=rows.incidents,
            hours_records=rows.hours_records,
            min_monthly_hours=self._min_monthly_hours,
        )
        previous = compute_metrics(
            month=month.previous(),
            incidents=rows.incidents,
            hours_records=rows.hours_records,
            min_monthly_hours=self._min_monthly_hours,
        )
        series = build_series(
            months=window,
            incidents=rows.incidents,
            hours_records=rows.hours_records,
            min_monthly_hours=self._min_monthly_hours,
        )
        return NarrativeRequest(
            employer_id=employer_id,
            employer_name=employer.name if employer is not None else None,
            month=month,
            metrics=current,
            series=tuple(series),
            comparison=compare_months(current, previous),
            benchmarks=benchmark_positions(current),
            data_quality=assess_data_quality(current, total_sites=len(sites)),
            injury_breakdown=injury_breakdown(
                i for i in rows.incidents if month.contains(i.occurred_on)
            ),
        )
