# src/mend_safety/domain/services/ranking_engine.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Cross-site ranking for one employer and month.

Purpose:
    Rank an employer's sites independently per metric (LTI rate, recordable
    count, severity score). Lower is better; rank 1 is best.

Design:
    - Ordering key is (value missing, value, site_id). Ties therefore break
      by ascending site id and sites without a computable value come last,
      so N sites always receive exactly the ranks 1..N.
    - Insufficient sites are ranked like any other and flagged.
    - Pure and idempotent.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from mend_safety.domain.entities.metrics import Metrics, SiteRank, SiteRankings
from mend_safety.domain.enums.safety import RankingMetric
from mend_safety.domain.value_objects.reporting_month import ReportingMonth

__all__ = ["site_metric_value", "rank_metric", "rank_sites"]


def site_metric_value(metrics: Metrics, metric: RankingMetric) -> Decimal | None:
    """Return the value a site is ordered by for ``metric``."""
    if metric is RankingMetric.LTI_RATE:
        return metrics.ltifr
    if metric is RankingMetric.RECORDABLE_COUNT:
        return Decimal(metrics.recordable_count)
    return metrics.severity_rate


def rank_metric(
    site_metrics: Mapping[int, Metrics], metric: RankingMetric
) -> tuple[SiteRank, ...]:
    """Rank all sites for a single metric.

    Args:
        site_metrics: Metrics per site id for the same month.
        metric: Metric to order by.

    Returns:
        Ranks ordered from best (1) to worst (N).
    """
    values = {site_id: site_metric_value(m, metric) for site_id, m in site_metrics.items()}
    ordered = sorted(
        values,
        key=lambda site_id: (
            values[site_id] is None,
            values[site_id] if values[site_id] is not None else Decimal(0),
            site_id,
        ),
    )
    total = len(ordered)
    return tuple(
        SiteRank(
            site_id=site_id,
            rank=position,
            total_sites=total,
            value=values[site_id],
            insufficient=not site_metrics[site_id].is_sufficient,
        )
        for position, site_id in enumerate(ordered, start=1)
    )


def rank_sites(
    *, employer_id: int, month: ReportingMonth, site_metrics: Mapping[int, Metrics]
) -> SiteRankings:
    """Rank an employer's sites for every ranking metric."""
    return SiteRankings(
        employer_id=employer_id,
        month=month,
        by_metric={metric: rank_metric(site_metrics, metric) for metric in RankingMetric},
    )
