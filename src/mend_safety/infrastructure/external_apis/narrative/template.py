# src/mend_safety/infrastructure/external_apis/narrative/template.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Deterministic template narrative generator.

Used when no external narrative endpoint is configured. Produces the same
text for the same input, which keeps reports reproducible in development
and tests.
"""

from __future__ import annotations

from decimal import Decimal

from mend_safety.domain.entities.report import NarrativeRequest
from mend_safety.domain.enums.safety import IncidentCategory, RateMetric
from mend_safety.domain.services.report_insights import INDUSTRY_BENCHMARKS
from mend_safety.infrastructure.external_apis.narrative.prompt import (
    fmt_hours,
    fmt_rate,
    format_narrative,
    month_label,
)

_TREND_THRESHOLD = Decimal(10)
_SIGNIFICANT_FACTOR = Decimal("1.5")
_SUBCONTRACTOR_SHARE = Decimal("0.3")


class TemplateNarrativeGenerator:
    """NarrativeGenerator that renders a fixed template."""

    async def generate(self, request: NarrativeRequest) -> str:
        return self.render(request)

    @staticmethod
    def _performance(request: NarrativeRequest) -> str:
        m = request.metrics
        benchmark = INDUSTRY_BENCHMARKS[RateMetric.LTIFR]
        ltifr = m.comparable(RateMetric.LTIFR)
        if ltifr is None:
            return (
                "Hours worked were below the minimum needed for a comparable LTIFR, "
                "so the rate is not compared with the industry benchmark."
            )
        if ltifr < benchmark:
            return (
                "The organisation is performing better than the industry benchmark "
                f"for LTIFR ({fmt_rate(ltifr)} vs {benchmark})."
            )
        if ltifr > benchmark * _SIGNIFICANT_FACTOR:
            return (
                f"The organisation's LTIFR of {fmt_rate(ltifr)} significantly exceeds the "
                f"industry benchmark of {benchmark}, indicating elevated safety risk."
            )
        return (
            f"The organisation's LTIFR of {fmt_rate(ltifr)} is near the industry "
            f"benchmark of {benchmark}."
        )

    @staticmethod
    def _trend(request: NarrativeRequest) -> str:
        change = request.comparison.lti_change_pct
        if change is None:
            return (
                " LTIFR is not comparable with the previous month because one of the "
                "periods lacks sufficient hours."
            )
        if change < -_TREND_THRESHOLD:
            return (
                " Safety performance has improved from the previous month, with LTIFR "
                f"decreasing by {abs(change):.1f}%."
            )
        if change > _TREND_THRESHOLD:
            return (
                f" There has been a concerning increase in LTIFR of {change:.1f}% "
                "compared to last month."
            )
        return " Safety performance has remained relatively stable compared to the previous month."

    def render(self, request: NarrativeRequest) -> str:
        m = request.metrics
        counts = m.incident_counts
        lti, mti = counts[IncidentCategory.LTI], counts[IncidentCategory.MTI]
        top_type = request.injury_breakdown[0][0] if request.injury_breakdown else "N/A"

        if mti > lti:
            lti_note = (
                "Medical treatment injuries outnumbered lost time injuries, "
                "suggesting effective early intervention."
            )
        elif lti > 0:
            lti_note = (
                "The occurrence of lost time injuries indicates opportunity "
                "for preventive measures."
            )
        else:
            lti_note = "No lost time injuries were recorded this period."

        paragraphs = [
            f"During {month_label(request)}, {m.recordable_count} recordable incidents were "
            f"reported across {fmt_hours(m.total_hours)} hours worked. "
            f"{self._performance(request)}{self._trend(request)}",
            f'The most common injury type was "{top_type}". {lti_note}',
        ]
        if request.data_quality is not None and request.data_quality.has_estimated_hours:
            paragraphs.append(
                "Note: Some hours data is estimated. Frequency rates should be "
                "interpreted with this in mind."
            )

        return format_narrative("\n\n".join(paragraphs), self._recommendations(request))

    @staticmethod
    def _recommendations(request: NarrativeRequest) -> list[str]:
        m = request.metrics
        recs: list[str] = []
        ltifr = m.comparable(RateMetric.LTIFR)
        if ltifr is not None and ltifr > INDUSTRY_BENCHMARKS[RateMetric.LTIFR]:
            recs.append(
                "Conduct a comprehensive safety audit to identify root causes of "
                "elevated injury rates."
            )
        if m.subcontractor_hours > m.employer_hours * _SUBCONTRACTOR_SHARE:
            recs.append(
                "Implement enhanced safety induction and monitoring for subcontractor personnel."
            )
        change = request.comparison.lti_change_pct
        if change is not None and change > _TREND_THRESHOLD:
            recs.append(
                "Investigate recent changes in work activities or conditions that may "
                "have contributed to increased incident rates."
            )
        if len(recs) < 3:
            recs.append("Maintain current safety protocols and continue regular toolbox talks.")
            recs.append(
                "Ensure all near-misses are being reported to enable proactive risk management."
            )
        return recs
