# src/mend_safety/application/services/scoped_rows.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Scoped row loading shared by the metrics, series, ranking and report paths.

Purpose:
    Fetch incidents and hours records for a set of months through the
    ``SafetyStore`` using a resolved ``ScopeDecision``, then verify that no
    row escaped the scope before any aggregation runs.

Layer:
    application/services
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.safety import Incident, MonthlyHoursRecord
from mend_safety.domain.interfaces.repositories.safety_store import SafetyStore
from mend_safety.domain.services.metrics_aggregator import ensure_rows_in_scope
from mend_safety.domain.value_objects.reporting_month import ReportingMonth


@dataclass(frozen=True)
class ScopedRows:
    """Incidents and hours records already constrained by a scope."""

    months: tuple[ReportingMonth, ...]
    incidents: tuple[Incident, ...]
    hours_records: tuple[MonthlyHoursRecord, ...]

    def for_site(self, site_id: int) -> ScopedRows:
        """Narrow to one site; employer-level hours records are dropped."""
        return ScopedRows(
            months=self.months,
            incidents=tuple(i for i in self.incidents if i.site_id == site_id),
            hours_records=tuple(r for r in self.hours_records if r.site_id == site_id),
        )


class ScopedRowsLoader:
    """Load scope-filtered rows covering a contiguous set of months."""

    def __init__(self, store: SafetyStore) -> None:
        self._store = store

    async def load(self, scope: ScopeDecision, months: Sequence[ReportingMonth]) -> ScopedRows:
        """Fetch rows for ``months`` under ``scope``.

        Raises:
            ScopeDenied: If ``scope`` is denied or the store leaked rows.
            UpstreamUnavailable: If the store fails after retries.
        """
        scope.require_readable()
        ordered = tuple(sorted(set(months)))
        if not ordered:
            return ScopedRows(months=(), incidents=(), hours_records=())

        incident_rows, hours_rows = await asyncio.gather(
            self._store.list_incidents(
                scope, start=ordered[0].first_day, end_exclusive=ordered[-1].end_exclusive
            ),
            self._store.list_hours_records(scope, months=ordered),
        )
        incidents = tuple(incident_rows)
        hours = tuple(hours_rows)
        ensure_rows_in_scope(
            scope, [i.employer_id for i in incidents] + [r.employer_id for r in hours]
        )
        return ScopedRows(months=ordered, incidents=incidents, hours_records=hours)
