# src/mend_safety/adapters/repositories/generated_reports_repository.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""SQLAlchemy repository for generated safety reports.

Layer:
    adapters/repositories

Notes:
    The revision history is stored as a JSON list of
    ``{"summary": ..., "generated_at": ...}`` objects, oldest first.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from mend_safety.adapters.repositories.base_repository import BaseRepository
from mend_safety.domain.entities.report import GeneratedReport, ReportRevision
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from mend_safety.infrastructure.database.models.safety import GeneratedReportRow


class SqlAlchemyGeneratedReportsRepository(BaseRepository):
    """Upsert-based report storage keyed by (employer_id, month)."""

    @staticmethod
    def _history_to_json(report: GeneratedReport) -> list[dict[str, Any]]:
        return [
            {"summary": rev.text, "generated_at": rev.generated_at.isoformat()}
            for rev in report.history
        ]

    @staticmethod
    def _to_entity(row: GeneratedReportRow) -> GeneratedReport:
        history = tuple(
            ReportRevision(
                text=str(item["summary"]),
                generated_at=datetime.fromisoformat(str(item["generated_at"])),
            )
            for item in (row.summary_history or [])
        )
        return GeneratedReport(
            employer_id=row.employer_id,
            month=ReportingMonth.parse(row.month),
            text=row.current_summary,
            generated_at=row.last_summary_generated,
            history=history,
        )

    async def get(self, employer_id: int, month: ReportingMonth) -> GeneratedReport | None:
        stmt = select(GeneratedReportRow).where(
            GeneratedReportRow.employer_id == employer_id,
            GeneratedReportRow.month == str(month),
        )

        async def _q(session: AsyncSession) -> GeneratedReport | None:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return None if row is None else self._to_entity(row)

        return await self._run("reports.get", _q)

    async def save(self, report: GeneratedReport) -> None:
        values = {
            "employer_id": report.employer_id,
            "month": str(report.month),
            "current_summary": report.text,
            "last_summary_generated": report.generated_at,
            "summary_history": self._history_to_json(report),
        }
        stmt = pg_insert(GeneratedReportRow).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[GeneratedReportRow.employer_id, GeneratedReportRow.month],
            set_={
                "current_summary": stmt.excluded.current_summary,
                "last_summary_generated": stmt.excluded.last_summary_generated,
                "summary_history": stmt.excluded.summary_history,
            },
        )

        async def _q(session: AsyncSession) -> None:
            await session.execute(stmt)
            await session.commit()

        await self._run("reports.save", _q)
