# tests/unit/domain/safety/test_reporting_month.py
from __future__ import annotations

from datetime import date

import pytest

from mend_safety.domain.exceptions.safety import InvalidInput
from mend_safety.domain.value_objects.identifiers import optional_positive_id, require_positive_id
from mend_safety.domain.value_objects.reporting_month import ReportingMonth


def test_parse_and_format_round_trip() -> None:
    month = ReportingMonth.parse("2025-03")

    assert month == ReportingMonth(2025, 3)
    assert str(month) == "2025-03"


@pytest.mark.parametrize("raw", ["2025-3", "2025/03", "March 2025", "", "2025-13", "2025-00"])
def test_parse_rejects_malformed_months(raw: str) -> None:
    with pytest.raises(InvalidInput) as ei:
        ReportingMonth.parse(raw)

    assert ei.value.code == "INVALID_INPUT"


def test_bounds_and_containment() -> None:
    month = ReportingMonth(2024, 12)

    assert month.first_day == date(2024, 12, 1)
    assert month.end_exclusive == date(2025, 1, 1)
    assert month.contains(date(2024, 12, 31))
    assert not month.contains(date(2025, 1, 1))
    assert month.previous() == ReportingMonth(2024, 11)


def test_window_is_ascending_and_crosses_years() -> None:
    window = ReportingMonth.window(ReportingMonth(2025, 2), 4)

    assert [str(m) for m in window] == ["2024-11", "2024-12", "2025-01", "2025-02"]


@pytest.mark.parametrize("value", [0, -1, True, "8", 1.5])
def test_require_positive_id_rejects_malformed_ids(value: object) -> None:
    with pytest.raises(InvalidInput):
        require_positive_id(value, field="employer_id")


def test_optional_positive_id_passes_none() -> None:
    assert optional_positive_id(None, field="employer_id") is None
    assert optional_positive_id(8, field="employer_id") == 8
