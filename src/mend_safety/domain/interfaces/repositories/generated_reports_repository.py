# src/mend_safety/domain/interfaces/repositories/generated_reports_repository.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Generated report persistence interface.

Layer:
    domain/interfaces/repositories

Notes:
    Only the report cache writes through this interface, and only while it
    holds the single-writer slot for the key.
"""

from __future__ import annotations

from typing import Protocol

from mend_safety.domain.entities.report import GeneratedReport
from mend_safety.domain.value_objects.reporting_month import ReportingMonth


class GeneratedReportsRepository(Protocol):
    """Protocol for report storage keyed by (employer_id, month)."""

    async def get(self, employer_id: int, month: ReportingMonth) -> GeneratedReport | None:
        """Return the stored report for the key, or ``None``."""

    async def save(self, report: GeneratedReport) -> None:
        """Upsert ``report`` (text, timestamp and full revision history)."""
