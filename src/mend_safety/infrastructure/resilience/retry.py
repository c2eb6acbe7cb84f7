# src/mend_safety/infrastructure/resilience/retry.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Bounded retry for every external I/O call.

Summary:
    ``retry_async`` retries an async callable with jittered exponential
    backoff. ``call_upstream`` is the single wrapper used by the store,
    redis and narrative adapters: each attempt carries a timeout, transient
    failures are retried a bounded number of times, and exhaustion surfaces
    as ``UpstreamUnavailable`` instead of hanging or returning empty data.

Notes:
    Domain errors are never retried; they propagate unchanged.
    ``asyncio.CancelledError`` is not an ``Exception`` and is never retried.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import TypeVar

from mend_safety.config.settings import Settings
from mend_safety.domain.exceptions.base import DomainError
from mend_safety.domain.exceptions.safety import UpstreamUnavailable
from mend_safety.infrastructure.logging.logger import get_json_logger
from mend_safety.infrastructure.observability.metrics import get_upstream_retries_total

T = TypeVar("T")

logger = get_json_logger(__name__)

__all__ = [
    "RetryPolicy",
    "retry_async",
    "call_upstream",
    "is_transient",
]


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for bounded retries.

    Attributes:
        attempts: Total attempts including the first one (>= 1).
        base_s: Base backoff in seconds; doubled per attempt.
        cap_s: Maximum backoff for a single wait.
        jitter: Use full jitter (uniform in [0, backoff]) when True.
    """

    attempts: int
    base_s: float
    cap_s: float
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")
        if self.base_s < 0 or self.cap_s < 0:
            raise ValueError("backoff values must be non-negative")

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            attempts=settings.upstream_max_attempts,
            base_s=settings.upstream_backoff_base_s,
            cap_s=settings.upstream_backoff_cap_s,
        )

    def backoff_for(self, attempt: int) -> float:
        """Return the wait before retry number ``attempt`` (0-based)."""
        backoff = min(self.cap_s, self.base_s * (2**attempt))
        if self.jitter:
            backoff = random.uniform(0, backoff)  # noqa: S311
        return backoff


def is_transient(exc: BaseException) -> bool:
    """Default retry predicate: anything but a domain error."""
    return isinstance(exc, Exception) and not isinstance(exc, DomainError)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    retry_on: Callable[[Exception], bool] = is_transient,
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """Run ``fn`` until it succeeds or the retry budget is exhausted.

    Args:
        fn: Zero-arg async callable, invoked once per attempt.
        policy: Attempt count and backoff configuration.
        retry_on: Predicate deciding whether an exception is retryable.
        on_retry: Optional hook called with (attempt, exception) before waiting.

    Returns:
        The first successful result.

    Raises:
        Exception: The last exception once attempts are exhausted, or the
            first non-retryable one.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:
            if attempt + 1 >= policy.attempts or not retry_on(exc):
                raise
            if on_retry is not None:
                on_retry(attempt, exc)
        await asyncio.sleep(policy.backoff_for(attempt))
        attempt += 1


async def call_upstream(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    timeout_s: float,
    operation: str,
    retry_on: Callable[[Exception], bool] = is_transient,
) -> T:
    """Call an external dependency with per-attempt timeout and bounded retries.

    Args:
        fn: Zero-arg async callable performing one attempt.
        policy: Retry policy shared by all upstream calls.
        timeout_s: Per-attempt timeout in seconds.
        operation: Stable operation label used in logs and metrics.
        retry_on: Predicate for retryable exceptions. Timeouts always retry.

    Returns:
        The result of the first successful attempt.

    Raises:
        UpstreamUnavailable: When every attempt failed or a non-retryable
            infrastructure error occurred.
        DomainError: Domain errors raised by ``fn`` propagate unchanged.
    """

    async def _attempt() -> T:
        return await asyncio.wait_for(fn(), timeout=timeout_s)

    def _retryable(exc: Exception) -> bool:
        return isinstance(exc, TimeoutError) or retry_on(exc)

    def _on_retry(attempt: int, exc: Exception) -> None:
        logger.warning(
            "upstream.retry",
            extra={
                "extra": {
                    "operation": operation,
                    "attempt": attempt + 1,
                    "max_attempts": policy.attempts,
                    "exc_type": type(exc).__name__,
                }
            },
        )
        with suppress(Exception):
            get_upstream_retries_total().labels(operation=operation).inc()

    try:
        return await retry_async(_attempt, policy=policy, retry_on=_retryable, on_retry=_on_retry)
    except DomainError:
        raise
    except Exception as exc:
        logger.error(
            "upstream.unavailable",
            extra={
                "extra": {
                    "operation": operation,
                    "max_attempts": policy.attempts,
                    "exc_type": type(exc).__name__,
                }
            },
        )
        raise UpstreamUnavailable(
            f"{operation} failed after retries",
            details={"operation": operation, "attempts": policy.attempts},
        ) from exc
