# src/mend_safety/domain/entities/safety.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Tenant, site, incident and worked-hours entities.

Purpose:
    Read-only projections of the rows this core consumes from the persistent
    store. They are created and updated by external write paths.

Layer:
    domain/entities

Notes:
    ``Incident.employer_id`` is always populated from the owning site by the
    store query; it is never taken from client input.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from mend_safety.domain.enums.safety import IncidentCategory, SiteStatus
from mend_safety.domain.value_objects.reporting_month import ReportingMonth

__all__ = ["Employer", "Site", "Incident", "MonthlyHoursRecord"]


@dataclass(frozen=True)
class Employer:
    """A tenant organisation."""

    employer_id: int
    name: str
    state: str | None = None


@dataclass(frozen=True)
class Site:
    """A work site owned by exactly one employer."""

    site_id: int
    employer_id: int
    name: str
    status: SiteStatus = SiteStatus.WORKING


@dataclass(frozen=True)
class Incident:
    """A reported safety incident.

    Attributes:
        incident_id: Store identifier.
        site_id: Site where the incident occurred.
        employer_id: Owning employer, derived from ``site.employer_id``.
        occurred_on: Calendar date of the incident.
        category: LTI, MTI, FAI or OTHER.
        days_lost: Working days lost (LTI only; zero otherwise).
        injury_type: Free-form injury classification, if recorded.
    """

    incident_id: int
    site_id: int
    employer_id: int
    occurred_on: date
    category: IncidentCategory
    days_lost: int = 0
    injury_type: str | None = None

    def __post_init__(self) -> None:
        if self.days_lost < 0:
            raise ValueError("days_lost must be non-negative")

    @property
    def month(self) -> ReportingMonth:
        return ReportingMonth.of(self.occurred_on)


@dataclass(frozen=True)
class MonthlyHoursRecord:
    """A worked-hours submission for one owner and month.

    Several records may exist for the same owner and month (corrections); the
    one with the latest ``recorded_at`` is current.

    Attributes:
        employer_id: Owning employer.
        site_id: Site the hours belong to, or ``None`` for an employer-level record.
        month: Reporting month.
        employer_hours: Hours worked by the employer's own workforce.
        subcontractor_hours: Hours worked by subcontractors.
        recorded_at: Submission timestamp (timezone-aware).
        is_estimated: True when the submitter flagged the figure as an estimate.
    """

    employer_id: int
    site_id: int | None
    month: ReportingMonth
    employer_hours: Decimal
    subcontractor_hours: Decimal
    recorded_at: datetime
    is_estimated: bool = False

    def __post_init__(self) -> None:
        if self.employer_hours < 0 or self.subcontractor_hours < 0:
            raise ValueError("hours must be non-negative")
        if self.recorded_at.tzinfo is None:
            raise ValueError("recorded_at must be timezone-aware")

    @property
    def total_hours(self) -> Decimal:
        return self.employer_hours + self.subcontractor_hours

    @property
    def owner_key(self) -> tuple[int, int | None]:
        """Deduplication key within a month: (employer, site or employer-level)."""
        return (self.employer_id, self.site_id)
