# tests/unit/domain/safety/test_ranking_engine.py
from __future__ import annotations

import itertools
from datetime import date
from decimal import Decimal

from mend_safety.domain.entities.metrics import Metrics
from mend_safety.domain.enums.safety import IncidentCategory, RankingMetric
from mend_safety.domain.services.metrics_aggregator import compute_metrics
from mend_safety.domain.services.ranking_engine import rank_metric, rank_sites
from testkit.safety import MARCH, hours, incident


def _site_metrics(site_id: int, ltis: int, worked: int, *, mtis: int = 0) -> Metrics:
    incidents = [
        incident(site_id * 100 + n, site_id, 8, date(2025, 3, 1 + n), days_lost=n + 1)
        for n in range(ltis)
    ]
    incidents += [
        incident(site_id * 1000 + n, site_id, 8, date(2025, 3, 1 + n), IncidentCategory.MTI)
        for n in range(mtis)
    ]
    records = [hours(8, site_id, MARCH, worked)] if worked else []
    return compute_metrics(month=MARCH, incidents=incidents, hours_records=records)


def _abc() -> dict[int, Metrics]:
    return {
        81: _site_metrics(81, 1, 100_000),
        82: _site_metrics(82, 2, 100_000),
        83: _site_metrics(83, 3, 100_000),
    }


def test_lower_lti_rate_ranks_better() -> None:
    ranks = rank_metric(_abc(), RankingMetric.LTI_RATE)

    assert [(r.site_id, r.rank) for r in ranks] == [(81, 1), (82, 2), (83, 3)]
    assert [r.value for r in ranks] == [Decimal("10.00"), Decimal("20.00"), Decimal("30.00")]
    assert all(r.total_sites == 3 for r in ranks)


def test_ranks_form_a_permutation_for_every_metric() -> None:
    rankings = rank_sites(employer_id=8, month=MARCH, site_metrics=_abc())

    for metric in RankingMetric:
        ranks = rankings.ranks_for(metric)
        assert sorted(r.rank for r in ranks) == [1, 2, 3]
        assert {r.site_id for r in ranks} == {81, 82, 83}


def test_ties_break_on_site_id() -> None:
    metrics = {
        92: _site_metrics(92, 1, 100_000),
        91: _site_metrics(91, 1, 100_000),
    }

    ranks = rank_metric(metrics, RankingMetric.LTI_RATE)

    assert [(r.site_id, r.rank) for r in ranks] == [(91, 1), (92, 2)]


def test_ranking_does_not_depend_on_input_order() -> None:
    base = _abc()
    expected = rank_sites(employer_id=8, month=MARCH, site_metrics=base)

    for order in itertools.permutations(base):
        shuffled = {site_id: base[site_id] for site_id in order}
        assert rank_sites(employer_id=8, month=MARCH, site_metrics=shuffled) == expected


def test_site_without_hours_ranks_last_and_is_flagged() -> None:
    metrics = _abc() | {84: _site_metrics(84, 0, 0)}

    ranks = rank_metric(metrics, RankingMetric.LTI_RATE)

    assert ranks[-1].site_id == 84
    assert ranks[-1].value is None
    assert ranks[-1].insufficient
    assert ranks[-1].rank == 4


def test_insufficient_site_is_still_ranked() -> None:
    metrics = _abc() | {85: _site_metrics(85, 0, 100)}

    ranks = rank_metric(metrics, RankingMetric.LTI_RATE)

    entry = next(r for r in ranks if r.site_id == 85)
    assert entry.rank == 1
    assert entry.insufficient


def test_metrics_rank_independently() -> None:
    metrics = {
        81: _site_metrics(81, 1, 100_000, mtis=5),
        82: _site_metrics(82, 2, 100_000),
    }

    rankings = rank_sites(employer_id=8, month=MARCH, site_metrics=metrics)

    assert rankings.rank_of(81, RankingMetric.LTI_RATE) == 1
    assert rankings.rank_of(81, RankingMetric.RECORDABLE_COUNT) == 2
    assert rankings.rank_of(99, RankingMetric.LTI_RATE) is None


def test_ranking_is_idempotent() -> None:
    metrics = _abc()

    assert rank_sites(employer_id=8, month=MARCH, site_metrics=metrics) == rank_sites(
        employer_id=8, month=MARCH, site_metrics=metrics
    )
