# src/mend_safety/infrastructure/logging/logger.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

This module exposes an idempotent root configurator and a per-module logger
factory producing one JSON object per line.

Features:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * ``request_id`` and ``trace_id`` enrichment via contextvars, set by the
      request-context middleware.
    * Structured payloads passed as ``extra={"extra": {...}}`` are merged
      into the top-level object.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    log.info("safety.compute_metrics.start", extra={"extra": {"month": "2025-01"}})
"""

from __future__ import annotations

import json
import logging
import os
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "configure_root_logging",
    "get_json_logger",
    "set_request_context",
    "clear_request_context",
    "get_request_id",
    "get_trace_id",
]

_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("mend_request_id", default=None)
_TRACE_ID_CTX: ContextVar[str | None] = ContextVar("mend_trace_id", default=None)


def set_request_context(*, request_id: str | None = None, trace_id: str | None = None) -> None:
    """Set per-request correlation identifiers on the current context.

    Passing only one argument updates that value and leaves the other as is.
    """
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if trace_id is not None:
        _TRACE_ID_CTX.set(trace_id)


def clear_request_context() -> None:
    _REQUEST_ID_CTX.set(None)
    _TRACE_ID_CTX.set(None)


def get_request_id() -> str | None:
    """Return the current request id from contextvars, if any."""
    return _REQUEST_ID_CTX.get(None)


def get_trace_id() -> str | None:
    """Return the current trace id from contextvars, if any."""
    return _TRACE_ID_CTX.get(None)


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys and optional extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = getattr(record, "request_id", None) or _REQUEST_ID_CTX.get(None)
        if rid:
            payload["request_id"] = rid
        tid = getattr(record, "trace_id", None) or _TRACE_ID_CTX.get(None)
        if tid:
            payload["trace_id"] = tid

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)

        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def configure_root_logging(level: str | int | None = None) -> None:
    """Initialize the root logger with a JSON stream handler (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env ``LOG_LEVEL`` or ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    root.setLevel(resolved)

    if any(isinstance(h.formatter, _JsonFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module logger that propagates to the JSON root handler.

    This does not configure the root logger; call :func:`configure_root_logging`
    once at startup.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
