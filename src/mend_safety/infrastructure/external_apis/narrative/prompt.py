# src/mend_safety/infrastructure/external_apis/narrative/prompt.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Prompt rendering and response formatting for narrative generation."""

from __future__ import annotations

import json
from collections.abc import Sequence
from decimal import Decimal

from mend_safety.domain.entities.report import NarrativeRequest
from mend_safety.domain.enums.safety import IncidentCategory, RateMetric
from mend_safety.domain.services.report_insights import INDUSTRY_BENCHMARKS

SYSTEM_PROMPT = (
    "You are a workplace safety analyst for the Australian construction industry. "
    "Respond only with JSON of the form "
    '{"summary": "...", "recommendations": ["...", "..."]}.'
)


def month_label(request: NarrativeRequest) -> str:
    return request.month.first_day.strftime("%B %Y")


def fmt_rate(value: Decimal | None) -> str:
    return "n/a" if value is None else f"{value:.2f}"


def fmt_hours(value: Decimal) -> str:
    return f"{value:,.0f}"


def fmt_change(value: Decimal | None) -> str:
    return "not comparable" if value is None else f"{value:+.1f}%"


def render_prompt(request: NarrativeRequest) -> str:
    """Render the user prompt for an LLM-backed generator."""
    m = request.metrics
    counts = m.incident_counts
    lines = [
        f"REPORT PERIOD: {month_label(request)}",
        f"ORGANISATION: {request.employer_name or f'employer {request.employer_id}'}",
        "",
        "SAFETY METRICS:",
        f"- Lost Time Injuries (LTI): {counts[IncidentCategory.LTI]}",
        f"- Medical Treatment Injuries (MTI): {counts[IncidentCategory.MTI]}",
        f"- First Aid Injuries (FAI): {counts[IncidentCategory.FAI]}",
        f"- Total Recordable Incidents: {m.recordable_count}",
        f"- Total Hours Worked: {fmt_hours(m.total_hours)}",
        f"- Employee Hours: {fmt_hours(m.employer_hours)}",
        f"- Subcontractor Hours: {fmt_hours(m.subcontractor_hours)}",
        f"- Data sufficiency: {m.sufficiency.value}",
        "",
        "FREQUENCY RATES (per million hours):",
        f"- LTIFR: {fmt_rate(m.ltifr)} (benchmark {INDUSTRY_BENCHMARKS[RateMetric.LTIFR]})",
        f"- TRIFR: {fmt_rate(m.trifr)} (benchmark {INDUSTRY_BENCHMARKS[RateMetric.TRIFR]})",
        f"- MTIFR: {fmt_rate(m.mtifr)} (benchmark {INDUSTRY_BENCHMARKS[RateMetric.MTIFR]})",
        "",
        "MONTH-ON-MONTH CHANGE:",
        f"- LTIFR: {fmt_change(request.comparison.lti_change_pct)}",
        f"- TRIFR: {fmt_change(request.comparison.trifr_change_pct)}",
        f"- Hours: {fmt_change(request.comparison.hours_change_pct)}",
        "",
        "RECENT TREND (LTIFR by month):",
    ]
    lines.extend(
        f"- {p.month}: {fmt_rate(p.metrics.comparable(RateMetric.LTIFR))}" for p in request.series
    )
    lines.append("")
    lines.append("INCIDENT BREAKDOWN BY INJURY TYPE:")
    lines.extend(_breakdown_lines(request.injury_breakdown))
    if request.data_quality is not None:
        dq = request.data_quality
        lines.extend(
            [
                "",
                "DATA QUALITY NOTES:",
                f"- Sites with hours data: {dq.sites_with_hours}/{dq.total_sites}",
                f"- Contains estimated hours: {'Yes' if dq.has_estimated_hours else 'No'}",
            ]
        )
    lines.extend(
        [
            "",
            "Provide a 2-3 paragraph executive summary and 3-5 actionable recommendations.",
        ]
    )
    return "\n".join(lines)


def _breakdown_lines(breakdown: Sequence[tuple[str, int]]) -> list[str]:
    if not breakdown:
        return ["- No incidents recorded"]
    return [f"- {name}: {count}" for name, count in breakdown]


def format_narrative(summary: str, recommendations: Sequence[str]) -> str:
    """Join summary and recommendations into the stored report text."""
    text = summary.strip()
    recs = [r.strip() for r in recommendations if r and r.strip()]
    if recs:
        text += "\n\nRecommendations:\n" + "\n".join(f"- {r}" for r in recs)
    return text


def parse_completion(content: str) -> str:
    """Turn a model reply into report text.

    JSON replies of the shape ``{"summary", "recommendations"}`` are
    formatted; anything else is used verbatim.

    Raises:
        ValueError: If the reply is empty.
    """
    stripped = content.strip()
    if stripped.startswith("```"):
        stripped = stripped.strip("`")
        stripped = stripped.removeprefix("json").strip()
    if not stripped:
        raise ValueError("empty narrative")
    try:
        payload = json.loads(stripped)
    except json.JSONDecodeError:
        return stripped
    if not isinstance(payload, dict) or not str(payload.get("summary", "")).strip():
        return stripped
    recs = payload.get("recommendations") or []
    if not isinstance(recs, list):
        recs = [str(recs)]
    return format_narrative(str(payload["summary"]), [str(r) for r in recs])
