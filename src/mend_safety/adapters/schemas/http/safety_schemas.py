# src/mend_safety/adapters/schemas/http/safety_schemas.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Safety HTTP schemas (adapters layer).

Purpose:
    Transport shapes for scope, incidents, metrics, series, rankings,
    reports and the staff employer context. Rates are serialized as decimal
    strings; ``null`` means "not computable" (no hours) or, on comparative
    fields, "insufficient data".

Layer:
    adapters/schemas/http
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from mend_safety.adapters.schemas.http.base import BaseHTTPSchema
from mend_safety.domain.enums.access import ScopeKind
from mend_safety.domain.enums.safety import IncidentCategory, Sufficiency

__all__ = [
    "ScopeHTTP",
    "IncidentHTTP",
    "MetricsHTTP",
    "SeriesPointHTTP",
    "SiteRankHTTP",
    "SiteRankingsHTTP",
    "ReportHTTP",
    "EmployerContextHTTP",
    "SetEmployerContextHTTP",
]


class ScopeHTTP(BaseHTTPSchema):
    kind: ScopeKind = Field(..., description="employer or all.")
    employer_id: int | None = Field(default=None, description="Restricting employer, if any.")


class IncidentHTTP(BaseHTTPSchema):
    incident_id: int
    site_id: int
    employer_id: int
    occurred_on: date
    category: IncidentCategory
    days_lost: int
    injury_type: str | None = None


class MetricsHTTP(BaseHTTPSchema):
    """Metrics for one scope and month."""

    month: str = Field(..., description="Reporting month, YYYY-MM.", examples=["2025-03"])
    total_hours: Decimal
    employer_hours: Decimal
    subcontractor_hours: Decimal
    incident_counts: dict[str, int] = Field(..., description="Count per incident category.")
    days_lost: int
    ltifr: Decimal | None
    trifr: Decimal | None
    mtifr: Decimal | None
    severity_rate: Decimal | None
    sufficiency: Sufficiency
    sites_reporting: int
    has_estimated_hours: bool


class SeriesPointHTTP(BaseHTTPSchema):
    month: str
    metrics: MetricsHTTP


class SiteRankHTTP(BaseHTTPSchema):
    site_id: int
    rank: int = Field(..., ge=1, description="1 is best.")
    total_sites: int
    value: Decimal | None
    insufficient: bool


class SiteRankingsHTTP(BaseHTTPSchema):
    employer_id: int
    month: str
    rankings: dict[str, list[SiteRankHTTP]] = Field(
        ..., description="Independent ranking per metric."
    )


class ReportHTTP(BaseHTTPSchema):
    employer_id: int
    month: str
    text: str
    cached: bool = Field(..., description="False only for the caller that generated the text.")
    generated_at: datetime


class EmployerContextHTTP(BaseHTTPSchema):
    employer_id: int | None = Field(
        default=None, description="Employer selected for this session, if any."
    )


class SetEmployerContextHTTP(BaseHTTPSchema):
    employer_id: int = Field(..., description="Employer to select for this session.")
