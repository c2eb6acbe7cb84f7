# src/mend_safety/application/use_cases/metrics/rank_sites.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Use case: rank one employer's sites for a month.

Layer:
    application/use_cases/metrics

Notes:
    - Requires a single-employer scope; ALL is rejected as InvalidInput.
    - Every site the store lists for the employer is ranked, including sites
      without hours or incidents in the month.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from mend_safety.application.services.scoped_rows import ScopedRowsLoader
from mend_safety.domain.entities.access import ScopeDecision
from mend_safety.domain.entities.metrics import Metrics, SiteRankings
from mend_safety.domain.interfaces.repositories.safety_store import SafetyStore
from mend_safety.domain.services.metrics_aggregator import (
    DEFAULT_MIN_MONTHLY_HOURS,
    compute_metrics,
    ensure_rows_in_scope,
)
from mend_safety.domain.services.ranking_engine import rank_sites
from mend_safety.domain.value_objects.reporting_month import ReportingMonth
from mend_safety.infrastructure.logging.logger import get_json_logger

logger: logging.Logger = get_json_logger(__name__)


@dataclass(frozen=True)
class RankSitesRequest:
    scope: ScopeDecision
    month: ReportingMonth


class RankSitesUseCase:
    """Compute per-site metrics and rank them per metric."""

    def __init__(
        self, store: SafetyStore, *, min_monthly_hours: Decimal = DEFAULT_MIN_MONTHLY_HOURS
    ) -> None:
        self._store = store
        self._loader = ScopedRowsLoader(store)
        self._min_monthly_hours = min_monthly_hours

    async def execute(self, req: RankSitesRequest) -> SiteRankings:
        """Rank the scope's sites.

        Raises:
            ScopeDenied: If the scope is denied or the store lists a foreign site.
            InvalidInput: If the scope is not a single employer.
            UpstreamUnavailable: If the store fails after retries.
        """
        employer_id = req.scope.require_single_employer()
        sites = await self._store.list_sites(req.scope)
        rows = await self._loader.load(req.scope, [req.month])

        ensure_rows_in_scope(req.scope, [s.employer_id for s in sites])

        site_metrics: dict[int, Metrics] = {}
        for site in sites:
            site_rows = rows.for_site(site.site_id)
            site_metrics[site.site_id] = compute_metrics(
                month=req.month,
                incidents=site_rows.incidents,
                hours_records=site_rows.hours_records,
                min_monthly_hours=self._min_monthly_hours,
            )

        rankings = rank_sites(employer_id=employer_id, month=req.month, site_metrics=site_metrics)
        logger.info(
            "safety.rank_sites.success",
            extra={
                "extra": {
                    "employer_id": employer_id,
                    "month": str(req.month),
                    "sites": len(site_metrics),
                    "insufficient_sites": sum(
                        1 for m in site_metrics.values() if not m.is_sufficient
                    ),
                }
            },
        )
        return rankings
