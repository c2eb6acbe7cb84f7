# src/mend_safety/adapters/repositories/safety_store_repository.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""SQLAlchemy implementation of the scoped safety store.

Purpose:
    Read employers, sites, incidents and hours records with the resolved
    scope applied inside every SQL statement.

Layer:
    adapters/repositories

Notes:
    - Statement builders are static so the scope filter can be asserted on
      the compiled SQL without a database.
    - A DENIED scope raises ``ScopeDenied`` before a statement is built.
    - Incident ownership comes from ``sites.employer_id`` via a join.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from mend_safety.adapters.repositories.base_repository import BaseRepository
from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.safety import Employer, Incident, MonthlyHoursRecord, Site
from mend_safety.domain.enums.safety import IncidentCategory, SiteStatus
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from mend_safety.infrastructure.database.models.safety import (
    EmployerRow,
    HoursWorkedRow,
    IncidentRow,
    SiteRow,
)


class SqlAlchemySafetyStore(BaseRepository):
    """Scope-enforcing safety store backed by PostgreSQL."""

    # ------------------------------------------------------------------
    # Statement builders
    # ------------------------------------------------------------------

    @staticmethod
    def _restrict(stmt: Select[Any], scope: ScopeDecision, employer_column: Any) -> Select[Any]:
        scope.require_readable()
        if scope.is_all:
            return stmt
        return stmt.where(employer_column == scope.employer_id)

    @staticmethod
    def employer_statement(scope: ScopeDecision) -> Select[Any]:
        employer_id = scope.require_single_employer()
        return select(EmployerRow).where(EmployerRow.employer_id == employer_id)

    @classmethod
    def sites_statement(cls, scope: ScopeDecision) -> Select[Any]:
        stmt = select(SiteRow).order_by(SiteRow.site_id)
        return cls._restrict(stmt, scope, SiteRow.employer_id)

    @classmethod
    def incidents_statement(
        cls, scope: ScopeDecision, *, start: date, end_exclusive: date
    ) -> Select[Any]:
        stmt = (
            select(IncidentRow, SiteRow.employer_id)
            .join(SiteRow, SiteRow.site_id == IncidentRow.site_id)
            .where(IncidentRow.date_of_injury >= start)
            .where(IncidentRow.date_of_injury < end_exclusive)
            .order_by(IncidentRow.date_of_injury, IncidentRow.incident_id)
        )
        return cls._restrict(stmt, scope, SiteRow.employer_id)

    @classmethod
    def hours_statement(
        cls, scope: ScopeDecision, *, months: Sequence[ReportingMonth]
    ) -> Select[Any]:
        stmt = (
            select(HoursWorkedRow)
            .where(HoursWorkedRow.month.in_([m.first_day for m in months]))
            .order_by(HoursWorkedRow.month, HoursWorkedRow.hours_id)
        )
        return cls._restrict(stmt, scope, HoursWorkedRow.employer_id)

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _to_site(row: SiteRow) -> Site:
        try:
            status = SiteStatus(row.status)
        except ValueError:
            status = SiteStatus.WORKING
        return Site(site_id=row.site_id, employer_id=row.employer_id, name=row.name, status=status)

    @staticmethod
    def _to_incident(row: IncidentRow, employer_id: int) -> Incident:
        try:
            category = IncidentCategory(row.category.upper())
        except ValueError:
            category = IncidentCategory.OTHER
        return Incident(
            incident_id=row.incident_id,
            site_id=row.site_id,
            employer_id=employer_id,
            occurred_on=row.date_of_injury,
            category=category,
            days_lost=row.days_lost or 0,
            injury_type=row.injury_type,
        )

    @staticmethod
    def _to_hours(row: HoursWorkedRow) -> MonthlyHoursRecord:
        return MonthlyHoursRecord(
            employer_id=row.employer_id,
            site_id=row.site_id,
            month=ReportingMonth.of(row.month),
            employer_hours=row.employee_hours,
            subcontractor_hours=row.subcontractor_hours,
            recorded_at=row.recorded_at,
            is_estimated=bool(row.is_estimated),
        )

    # ------------------------------------------------------------------
    # SafetyStore
    # ------------------------------------------------------------------

    async def get_employer(self, scope: ScopeDecision) -> Employer | None:
        stmt = self.employer_statement(scope)

        async def _q(session: AsyncSession) -> Employer | None:
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                return None
            return Employer(employer_id=row.employer_id, name=row.name, state=row.state)

        return await self._run("store.get_employer", _q)

    async def list_sites(self, scope: ScopeDecision) -> Sequence[Site]:
        stmt = self.sites_statement(scope)

        async def _q(session: AsyncSession) -> list[Site]:
            return [self._to_site(r) for r in (await session.execute(stmt)).scalars()]

        return await self._run("store.list_sites", _q)

    async def list_incidents(
        self, scope: ScopeDecision, *, start: date, end_exclusive: date
    ) -> Sequence[Incident]:
        stmt = self.incidents_statement(scope, start=start, end_exclusive=end_exclusive)

        async def _q(session: AsyncSession) -> list[Incident]:
            result = await session.execute(stmt)
            return [self._to_incident(row, employer_id) for row, employer_id in result.tuples()]

        return await self._run("store.list_incidents", _q)

    async def list_hours_records(
        self, scope: ScopeDecision, *, months: Sequence[ReportingMonth]
    ) -> Sequence[MonthlyHoursRecord]:
        if not months:
            scope.require_readable()
            return []
        stmt = self.hours_statement(scope, months=months)

        async def _q(session: AsyncSession) -> list[MonthlyHoursRecord]:
            return [self._to_hours(r) for r in (await session.execute(stmt)).scalars()]

        return await self._run("store.list_hours_records", _q)
