# tests/unit/infrastructure/external_apis/narrative/test_prompt.py
from __future__ import annotations

import json

import pytest

from mend_safety.infrastructure.external_apis.narrative.prompt import (
    format_narrative,
    parse_completion,
    render_prompt,
)
from testkit.safety import narrative_request


def test_render_prompt_contains_metrics_and_breakdown() -> None:
    prompt = render_prompt(narrative_request())

    assert "REPORT PERIOD: March 2025" in prompt
    assert "ORGANISATION: Acme Builders" in prompt
    assert "- Lost Time Injuries (LTI): 6" in prompt
    assert "- Total Hours Worked: 300,000" in prompt
    assert "- LTIFR: 20.00 (benchmark 4.0)" in prompt
    assert "- Sprain: 4" in prompt
    assert "- Sites with hours data: 3/3" in prompt


def test_trend_hides_insufficient_months() -> None:
    prompt = render_prompt(narrative_request())

    assert "- 2025-03: 20.00" in prompt
    assert "- 2025-02: n/a" in prompt


def test_month_on_month_change_without_comparable_baseline() -> None:
    prompt = render_prompt(narrative_request())

    assert "- LTIFR: not comparable" in prompt
    assert "- Hours: not comparable" in prompt


def test_format_narrative_appends_recommendations() -> None:
    text = format_narrative(" Summary. ", ["Do this", "  ", "Do that"])

    assert text == "Summary.\n\nRecommendations:\n- Do this\n- Do that"


def test_parse_completion_formats_json_reply() -> None:
    reply = json.dumps({"summary": "All good.", "recommendations": ["Keep going"]})

    assert parse_completion(reply) == "All good.\n\nRecommendations:\n- Keep going"


def test_parse_completion_strips_code_fences() -> None:
    reply = '```json\n{"summary": "Fenced.", "recommendations": []}\n```'

    assert parse_completion(reply) == "Fenced."


def test_parse_completion_keeps_plain_text() -> None:
    assert parse_completion("  Just prose.  ") == "Just prose."
    assert parse_completion('{"other": 1}') == '{"other": 1}'


@pytest.mark.parametrize("reply", ["", "   ", "``````"])
def test_parse_completion_rejects_empty(reply: str) -> None:
    with pytest.raises(ValueError):
        parse_completion(reply)
