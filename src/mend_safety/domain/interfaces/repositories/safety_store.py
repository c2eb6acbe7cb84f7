# src/mend_safety/domain/interfaces/repositories/safety_store.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Scoped read access to tenant safety data.

Purpose:
    Define the only path by which this core reads employers, sites,
    incidents and worked-hours records.

Layer:
    domain/interfaces/repositories

Notes:
    Every method takes a ``ScopeDecision`` rather than a raw employer id.
    Implementations must:
        - Raise ``ScopeDenied`` for a DENIED scope before issuing any query.
        - Apply an EMPLOYER scope as a hard filter inside the query itself,
          never as a post-filter over an unscoped fetch.
        - Derive ``Incident.employer_id`` from the owning site.
        - Raise ``UpstreamUnavailable`` once bounded retries are exhausted.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Protocol

from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.safety import Employer, Incident, MonthlyHoursRecord, Site
from mend_safety.domain.value_objects.reporting_month import ReportingMonth


class SafetyStore(Protocol):
    """Protocol for scope-enforcing safety data stores."""

    async def get_employer(self, scope: ScopeDecision) -> Employer | None:
        """Return the employer of a single-employer scope, if it exists."""

    async def list_sites(self, scope: ScopeDecision) -> Sequence[Site]:
        """Return sites within ``scope`` ordered by site id."""

    async def list_incidents(
        self,
        scope: ScopeDecision,
        *,
        start: date,
        end_exclusive: date,
    ) -> Sequence[Incident]:
        """Return incidents within ``scope`` that occurred in [start, end_exclusive).

        Results are ordered by (occurred_on, incident_id).
        """

    async def list_hours_records(
        self,
        scope: ScopeDecision,
        *,
        months: Sequence[ReportingMonth],
    ) -> Sequence[MonthlyHoursRecord]:
        """Return every hours record (corrections included) for ``months``."""
