# src/mend_safety/infrastructure/database/models/safety.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""ORM models for tenant safety data and generated reports.

Notes:
    Incidents carry no employer column: the owning employer is always
    derived by joining ``sites``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

NAMING_CONVENTIONS: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for safety models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTIONS)


class EmployerRow(Base):
    __tablename__ = "employers"

    employer_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    state: Mapped[str | None] = mapped_column(String(8))


class SiteRow(Base):
    __tablename__ = "sites"
    __table_args__ = (Index("ix_sites_employer_id", "employer_id"),)

    site_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employer_id: Mapped[int] = mapped_column(ForeignKey("employers.employer_id"))
    name: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(16), default="working")


class IncidentRow(Base):
    __tablename__ = "incidents"
    __table_args__ = (Index("ix_incidents_site_date", "site_id", "date_of_injury"),)

    incident_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.site_id"))
    date_of_injury: Mapped[date] = mapped_column(Date)
    category: Mapped[str] = mapped_column(String(8))
    days_lost: Mapped[int] = mapped_column(Integer, default=0)
    injury_type: Mapped[str | None] = mapped_column(String(64))


class HoursWorkedRow(Base):
    """Monthly hours submission; several rows per (owner, month) are corrections."""

    __tablename__ = "hours_worked"
    __table_args__ = (Index("ix_hours_worked_employer_month", "employer_id", "month"),)

    hours_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employer_id: Mapped[int] = mapped_column(ForeignKey("employers.employer_id"))
    site_id: Mapped[int | None] = mapped_column(ForeignKey("sites.site_id"))
    month: Mapped[date] = mapped_column(Date)
    employee_hours: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal(0))
    subcontractor_hours: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal(0))
    is_estimated: Mapped[bool] = mapped_column(Boolean, default=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class GeneratedReportRow(Base):
    __tablename__ = "generated_reports"

    employer_id: Mapped[int] = mapped_column(
        ForeignKey("employers.employer_id"), primary_key=True
    )
    month: Mapped[str] = mapped_column(String(7), primary_key=True)
    current_summary: Mapped[str] = mapped_column(Text)
    last_summary_generated: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    summary_history: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
