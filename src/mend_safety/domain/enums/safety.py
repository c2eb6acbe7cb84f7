# src/mend_safety/domain/enums/safety.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Safety reporting enums.

Purpose:
    Closed vocabularies for incidents, sites, data sufficiency, ranking
    metrics and benchmark outcomes.

Layer:
    domain/enums

Notes:
    - Pure domain types:
        * No logging.
        * No HTTP or persistence concerns.
"""

from __future__ import annotations

from enum import Enum


class IncidentCategory(str, Enum):
    """Incident classification used for frequency rates."""

    LTI = "LTI"  # lost time injury
    MTI = "MTI"  # medical treatment injury
    FAI = "FAI"  # first aid injury
    OTHER = "OTHER"

    @property
    def is_recordable(self) -> bool:
        """Return True if the category counts towards TRIFR."""
        return self in _RECORDABLE


_RECORDABLE = frozenset({IncidentCategory.LTI, IncidentCategory.MTI, IncidentCategory.FAI})


class SiteStatus(str, Enum):
    """Lifecycle status of a work site."""

    WORKING = "working"
    PAUSED = "paused"
    FINISHED = "finished"


class Sufficiency(str, Enum):
    """Whether a period has enough worked hours for comparative use."""

    SUFFICIENT = "sufficient"
    INSUFFICIENT = "insufficient"


class RateMetric(str, Enum):
    """Frequency rates reported on a Metrics value."""

    LTIFR = "ltifr"
    TRIFR = "trifr"
    MTIFR = "mtifr"
    SEVERITY = "severity_rate"


class RankingMetric(str, Enum):
    """Per-site metrics ranked independently by the ranking engine."""

    LTI_RATE = "lti_rate"
    RECORDABLE_COUNT = "recordable_count"
    SEVERITY_SCORE = "severity_score"


class BenchmarkPerformance(str, Enum):
    """Position of a rate relative to an industry benchmark."""

    ABOVE = "above"  # better than benchmark
    AT = "at"
    BELOW = "below"  # worse than benchmark
