# tests/testkit/safety.py
"""In-memory fakes and builders shared by the safety unit tests."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

from mend_safety.domain.entities.access import IdentityClaims, Role, ScopeDecision
from mend_safety.domain.entities.report import GeneratedReport, NarrativeRequest
from mend_safety.domain.entities.safety import Employer, Incident, MonthlyHoursRecord, Site
from mend_safety.domain.enums.access import RoleCapability
from mend_safety.domain.enums.safety import IncidentCategory
from mend_safety.domain.services.metrics_aggregator import compute_metrics
from mend_safety.domain.services.report_insights import (
    assess_data_quality,
    benchmark_positions,
    compare_months,
    injury_breakdown,
)
from mend_safety.domain.services.scope_resolver import RoleRegistry
from mend_safety.domain.services.time_series_builder import build_series
from mend_safety.domain.value_objects.reporting_month import ReportingMonth

MARCH = ReportingMonth(2025, 3)
T0 = datetime(2025, 4, 2, 9, 0, tzinfo=UTC)

STAFF = RoleCapability.STAFF
TENANT = RoleCapability.TENANT_SCOPED


def default_registry() -> RoleRegistry:
    return RoleRegistry(
        [
            Role(1, "mend_super_admin", STAFF),
            Role(2, "mend_account_manager", STAFF),
            Role(3, "mend_data_entry", STAFF),
            Role(4, "mend_analyst", STAFF),
            Role(5, "builder_admin", TENANT),
            Role(6, "site_admin", TENANT),
            Role(7, "client", TENANT),
        ]
    )


def identity(
    role_id: int | None,
    employer_id: int | None = None,
    *,
    session_id: str = "sess-1",
    user_id: str = "user-1",
) -> IdentityClaims:
    return IdentityClaims(
        user_id=user_id,
        session_id=session_id,
        role_id=role_id,
        assigned_employer_id=employer_id,
    )


def incident(
    incident_id: int,
    site_id: int,
    employer_id: int,
    occurred_on: date,
    category: IncidentCategory = IncidentCategory.LTI,
    *,
    days_lost: int = 0,
    injury_type: str | None = None,
) -> Incident:
    return Incident(
        incident_id=incident_id,
        site_id=site_id,
        employer_id=employer_id,
        occurred_on=occurred_on,
        category=category,
        days_lost=days_lost,
        injury_type=injury_type,
    )


def hours(
    employer_id: int,
    site_id: int | None,
    month: ReportingMonth,
    employer_hours: int | str,
    subcontractor_hours: int | str = 0,
    *,
    recorded_at: datetime = T0,
    is_estimated: bool = False,
) -> MonthlyHoursRecord:
    return MonthlyHoursRecord(
        employer_id=employer_id,
        site_id=site_id,
        month=month,
        employer_hours=Decimal(employer_hours),
        subcontractor_hours=Decimal(subcontractor_hours),
        recorded_at=recorded_at,
        is_estimated=is_estimated,
    )


@dataclass
class InMemorySafetyStore:
    """SafetyStore fake applying the same scope rules as the SQL store.

    Incident ownership is derived from the site table, never from the
    incident row, mirroring the join the real store performs.
    """

    employers: list[Employer] = field(default_factory=list)
    sites: list[Site] = field(default_factory=list)
    incidents: list[Incident] = field(default_factory=list)
    hours_records: list[MonthlyHoursRecord] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    def _site_owner(self, site_id: int) -> int | None:
        for site in self.sites:
            if site.site_id == site_id:
                return site.employer_id
        return None

    async def get_employer(self, scope: ScopeDecision) -> Employer | None:
        scope.require_readable()
        self.calls.append("get_employer")
        for employer in self.employers:
            if scope.employer_id == employer.employer_id:
                return employer
        return None

    async def list_sites(self, scope: ScopeDecision) -> Sequence[Site]:
        scope.require_readable()
        self.calls.append("list_sites")
        return [s for s in self.sites if scope.permits(s.employer_id)]

    async def list_incidents(
        self, scope: ScopeDecision, *, start: date, end_exclusive: date
    ) -> Sequence[Incident]:
        scope.require_readable()
        self.calls.append("list_incidents")
        out: list[Incident] = []
        for i in self.incidents:
            owner = self._site_owner(i.site_id)
            if owner is None or not scope.permits(owner):
                continue
            if start <= i.occurred_on < end_exclusive:
                out.append(i)
        return out

    async def list_hours_records(
        self, scope: ScopeDecision, *, months: Sequence[ReportingMonth]
    ) -> Sequence[MonthlyHoursRecord]:
        scope.require_readable()
        self.calls.append("list_hours_records")
        wanted = set(months)
        return [
            r for r in self.hours_records if r.month in wanted and scope.permits(r.employer_id)
        ]


def seeded_store() -> InMemorySafetyStore:
    """Employer 8 with sites A/B/C (81/82/83) and employer 1 with site 11.

    March 2025: every site worked 100,000 hours (site 11: 50,000). Site A had
    one LTI, B two, C three and site 11 four. Site 83 also logged an MTI.
    """
    store = InMemorySafetyStore(
        employers=[Employer(8, "Acme Builders"), Employer(1, "Other Co")],
        sites=[
            Site(81, 8, "Site A"),
            Site(82, 8, "Site B"),
            Site(83, 8, "Site C"),
            Site(11, 1, "Other Site"),
        ],
    )
    next_id = 1
    for site_id, employer_id, ltis in ((81, 8, 1), (82, 8, 2), (83, 8, 3), (11, 1, 4)):
        for n in range(ltis):
            store.incidents.append(
                incident(
                    next_id,
                    site_id,
                    employer_id,
                    date(2025, 3, 3 + n),
                    days_lost=2,
                    injury_type="Sprain" if n % 2 == 0 else "Laceration",
                )
            )
            next_id += 1
    store.incidents.append(
        incident(next_id, 83, 8, date(2025, 3, 20), IncidentCategory.MTI, injury_type="Burn")
    )
    for site_id, employer_id, worked in ((81, 8, 100_000), (82, 8, 100_000), (83, 8, 100_000)):
        store.hours_records.append(hours(employer_id, site_id, MARCH, worked))
    store.hours_records.append(hours(1, 11, MARCH, 50_000))
    return store


@dataclass
class InMemoryContextStore:
    values: dict[str, int] = field(default_factory=dict)
    reads: int = 0

    async def get(self, session_id: str) -> int | None:
        self.reads += 1
        return self.values.get(session_id)

    async def put(self, session_id: str, employer_id: int) -> None:
        self.values[session_id] = employer_id

    async def delete(self, session_id: str) -> None:
        self.values.pop(session_id, None)


@dataclass
class InMemoryReportsRepository:
    reports: dict[tuple[int, ReportingMonth], GeneratedReport] = field(default_factory=dict)
    saves: int = 0

    async def get(self, employer_id: int, month: ReportingMonth) -> GeneratedReport | None:
        return self.reports.get((employer_id, month))

    async def save(self, report: GeneratedReport) -> None:
        self.saves += 1
        self.reports[(report.employer_id, report.month)] = report


@dataclass
class CountingGenerator:
    """NarrativeGenerator fake that counts calls and can be slowed down."""

    delay_s: float = 0.0
    calls: int = 0
    fail_with: Exception | None = None
    started: asyncio.Event = field(default_factory=asyncio.Event)

    async def generate(self, request: NarrativeRequest) -> str:
        self.calls += 1
        self.started.set()
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.fail_with is not None:
            raise self.fail_with
        return f"report {request.employer_id} {request.month} #{self.calls}"


class FrozenClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def narrative_request(
    *,
    employer_id: int = 8,
    month: ReportingMonth = MARCH,
    incidents: Sequence[Incident] | None = None,
    hours_records: Sequence[MonthlyHoursRecord] | None = None,
    total_sites: int = 3,
) -> NarrativeRequest:
    """Build a NarrativeRequest from rows, defaulting to employer 8's seeded data."""
    store = seeded_store()
    rows_i = (
        [i for i in store.incidents if i.employer_id == employer_id]
        if incidents is None
        else incidents
    )
    rows_h = (
        [r for r in store.hours_records if r.employer_id == employer_id]
        if hours_records is None
        else hours_records
    )
    current = compute_metrics(month=month, incidents=rows_i, hours_records=rows_h)
    previous = compute_metrics(month=month.previous(), incidents=rows_i, hours_records=rows_h)
    return NarrativeRequest(
        employer_id=employer_id,
        employer_name="Acme Builders",
        month=month,
        metrics=current,
        series=tuple(
            build_series(
                months=ReportingMonth.window(month, 6), incidents=rows_i, hours_records=rows_h
            )
        ),
        comparison=compare_months(current, previous),
        benchmarks=benchmark_positions(current),
        data_quality=assess_data_quality(current, total_sites=total_sites),
        injury_breakdown=injury_breakdown(i for i in rows_i if month.contains(i.occurred_on)),
    )
