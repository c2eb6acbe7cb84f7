# src/mend_safety/domain/value_objects/reporting_month.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Reporting month value object.

Purpose:
    Represent a calendar month (``YYYY-MM``) used as the period key for hours
    records, metrics, series points, rankings and cached reports.

Design:
    - Immutable, hashable, totally ordered (year, then month).
    - Strict parsing: anything other than ``YYYY-MM`` raises InvalidInput
      before any scope resolution or store access happens.

Layer:
    domain/value_objects
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime

from mend_safety.domain.exceptions.safety import InvalidInput

__all__ = ["ReportingMonth"]

_MONTH_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})$")


@dataclass(frozen=True, order=True)
class ReportingMonth:
    """A single calendar month.

    Attributes:
        year: Four-digit calendar year.
        month: Month number in 1..12.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidInput(
                "month must be between 1 and 12",
                details={"year": self.year, "month": self.month},
            )
        if not 1900 <= self.year <= 9999:
            raise InvalidInput("year out of range", details={"year": self.year})

    @classmethod
    def parse(cls, raw: str) -> ReportingMonth:
        """Parse a ``YYYY-MM`` string.

        Args:
            raw: Month string supplied by a caller.

        Returns:
            The parsed month.

        Raises:
            InvalidInput: If the value is not a well-formed ``YYYY-MM`` month.
        """
        match = _MONTH_RE.match(raw.strip()) if isinstance(raw, str) else None
        if match is None:
            raise InvalidInput("month must use the YYYY-MM format", details={"month": raw})
        return cls(int(match.group("year")), int(match.group("month")))

    @classmethod
    def of(cls, value: date | datetime) -> ReportingMonth:
        """Return the month containing ``value``."""
        return cls(value.year, value.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end_exclusive(self) -> date:
        """First day of the following month."""
        return self.shift(1).first_day

    def shift(self, months: int) -> ReportingMonth:
        """Return the month ``months`` away from this one (negative for earlier)."""
        index = self.year * 12 + (self.month - 1) + months
        return ReportingMonth(index // 12, index % 12 + 1)

    def previous(self) -> ReportingMonth:
        return self.shift(-1)

    def contains(self, value: date) -> bool:
        return self.first_day <= value < self.end_exclusive

    @classmethod
    def window(cls, end: ReportingMonth, size: int) -> list[ReportingMonth]:
        """Return ``size`` consecutive months ending at ``end``, ascending."""
        return [end.shift(offset) for offset in range(-(size - 1), 1)]

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
