# tests/unit/domain/safety/test_time_series_builder.py
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from mend_safety.domain.enums.safety import RateMetric
from mend_safety.domain.exceptions.safety import InvalidInput
from mend_safety.domain.services.time_series_builder import (
    MAX_WINDOW_MONTHS,
    average_comparable,
    build_series,
    series_window,
)
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from testkit.safety import hours, incident

JAN, FEB, MAR = ReportingMonth(2025, 1), ReportingMonth(2025, 2), ReportingMonth(2025, 3)


def _rows() -> tuple[list, list]:
    incidents = [
        incident(1, 81, 8, date(2025, 1, 10)),
        incident(2, 81, 8, date(2025, 2, 10)),
        incident(3, 81, 8, date(2025, 3, 10)),
        incident(4, 81, 8, date(2025, 3, 11)),
    ]
    records = [
        hours(8, 81, JAN, 100_000),
        hours(8, 81, FEB, 100),  # below the minimum
        hours(8, 81, MAR, 100_000),
    ]
    return incidents, records


def test_series_is_ascending_with_one_point_per_month() -> None:
    incidents, records = _rows()

    series = build_series(
        months=[MAR, JAN, FEB, MAR], incidents=incidents, hours_records=records
    )

    assert [p.month for p in series] == [JAN, FEB, MAR]
    assert [p.metrics.ltifr for p in series] == [
        Decimal("10.00"),
        Decimal("10000.00"),
        Decimal("20.00"),
    ]


def test_months_without_rows_still_get_a_point() -> None:
    incidents, records = _rows()
    months = ReportingMonth.window(MAR, 6)

    series = build_series(months=months, incidents=incidents, hours_records=records)

    assert len(series) == 6
    assert series[0].month == ReportingMonth(2024, 10)
    assert series[0].metrics.ltifr is None
    assert not series[0].metrics.is_sufficient


def test_window_without_any_data_is_empty() -> None:
    incidents, records = _rows()

    series = build_series(
        months=ReportingMonth.window(ReportingMonth(2023, 6), 3),
        incidents=incidents,
        hours_records=records,
    )

    assert series == []


def test_average_excludes_insufficient_periods() -> None:
    incidents, records = _rows()
    series = build_series(months=[JAN, FEB, MAR], incidents=incidents, hours_records=records)

    assert average_comparable(series, RateMetric.LTIFR) == Decimal("15.00")


def test_average_without_sufficient_periods_is_none() -> None:
    series = build_series(
        months=[FEB],
        incidents=[incident(1, 81, 8, date(2025, 2, 3))],
        hours_records=[hours(8, 81, FEB, 10)],
    )

    assert average_comparable(series, RateMetric.LTIFR) is None


@pytest.mark.parametrize("size", [0, -1, MAX_WINDOW_MONTHS + 1, True])
def test_window_size_is_bounded(size: int) -> None:
    with pytest.raises(InvalidInput):
        series_window(MAR, size)


def test_series_window_returns_requested_months() -> None:
    assert series_window(MAR, 3) == [JAN, FEB, MAR]
