# src/mend_safety/infrastructure/observability/metrics.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Prometheus metrics (registry-aware, hot-reload safe).

Accessor functions return collectors bound to the *current*
``prometheus_client.REGISTRY``. Caches reset automatically when tests swap
the default registry, and duplicate registration falls back to the collector
already present on the registry.

Example:
    get_report_cache_events_total().labels(outcome="hit").inc()
    get_narrative_latency_seconds().labels(generator="http").observe(1.2)
"""

from __future__ import annotations

import threading
from contextlib import suppress
from typing import Final, TypeVar

import prometheus_client as prom
from prometheus_client import Counter, Histogram

__all__ = [
    "get_scope_decisions_total",
    "get_report_cache_events_total",
    "get_upstream_retries_total",
    "get_narrative_latency_seconds",
]

_BUCKETS: Final[tuple[float, ...]] = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)

_C = TypeVar("_C", Counter, Histogram)

_registry_id: int | None = None
_cache: dict[str, Counter | Histogram] = {}
_lock = threading.RLock()


def _ensure_registry() -> None:
    """Drop cached collectors when the default registry has been replaced."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id != rid:
            _cache.clear()
            _registry_id = rid


def _lookup_existing(name: str, kind: type[_C]) -> _C | None:
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, kind):
                return col
    return None


def _get_or_create(
    kind: type[_C],
    name: str,
    help_text: str,
    labelnames: tuple[str, ...],
    **kwargs: object,
) -> _C:
    _ensure_registry()
    with _lock:
        cached = _cache.get(name)
        if isinstance(cached, kind):
            return cached
        existing = _lookup_existing(name, kind)
        if existing is None:
            try:
                existing = kind(name, help_text, labelnames, registry=prom.REGISTRY, **kwargs)
            except ValueError:
                # Registered concurrently or under a suffixed alias.
                existing = _lookup_existing(name, kind)
                if existing is None:
                    raise
        _cache[name] = existing
        return existing


def get_scope_decisions_total() -> Counter:
    """Scope resolutions by outcome kind (employer|all|denied)."""
    return _get_or_create(
        Counter, "mend_scope_decisions_total", "Scope resolutions by outcome.", ("kind",)
    )


def get_report_cache_events_total() -> Counter:
    """Report cache outcomes (hit|miss|joined|lock_wait|lock_lost)."""
    return _get_or_create(
        Counter, "mend_report_cache_events_total", "Report cache outcomes.", ("outcome",)
    )


def get_upstream_retries_total() -> Counter:
    """Retries issued against upstream dependencies, by operation."""
    return _get_or_create(
        Counter, "mend_upstream_retries_total", "Upstream call retries.", ("operation",)
    )


def get_narrative_latency_seconds() -> Histogram:
    """Narrative generation latency, by generator kind."""
    return _get_or_create(
        Histogram,
        "mend_narrative_latency_seconds",
        "Narrative generation latency in seconds.",
        ("generator",),
        buckets=_BUCKETS,
    )
