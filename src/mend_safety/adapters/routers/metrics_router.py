# src/mend_safety/adapters/routers/metrics_router.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Prometheus scrape endpoint (``/v1/safety/metrics/prometheus``).

Histograms are created lazily; the endpoint touches them first so their
series appear on the very first scrape.

Layer:
    adapters/routers
"""

from __future__ import annotations

from contextlib import suppress

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from mend_safety.adapters.routers.base_router import BaseRouter
from mend_safety.infrastructure.observability.metrics import (
    get_narrative_latency_seconds,
    get_report_cache_events_total,
    get_scope_decisions_total,
    get_upstream_retries_total,
)

router = BaseRouter(version="v1", resource="safety", tags=["Observability"])


def _warm() -> None:
    for getter in (
        get_scope_decisions_total,
        get_report_cache_events_total,
        get_upstream_retries_total,
        get_narrative_latency_seconds,
    ):
        with suppress(Exception):
            getter()


@router.get("/metrics/prometheus", include_in_schema=False)
async def prometheus_metrics() -> Response:
    """Expose the default Prometheus registry in text format."""
    _warm()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
