# src/mend_safety/adapters/repositories/base_repository.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Base repository primitives.

Purpose:
    Provide a small base class that opens one short-lived ``AsyncSession``
    per store call and runs it under the shared bounded-retry wrapper.

Layer:
    adapters/repositories
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mend_safety.infrastructure.resilience.retry import RetryPolicy, call_upstream

T = TypeVar("T")

_DEFAULT_POLICY = RetryPolicy(attempts=3, base_s=0.2, cap_s=2.0)


def is_retryable_db_error(exc: Exception) -> bool:
    """Return True for connection-level failures worth retrying."""
    if isinstance(exc, OperationalError | InterfaceError | ConnectionError | OSError):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


class BaseRepository:
    """Session-factory backed repository with bounded retries."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        *,
        policy: RetryPolicy = _DEFAULT_POLICY,
        timeout_s: float = 10.0,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._policy = policy
        self._timeout_s = timeout_s

    async def _run(self, operation: str, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run ``fn`` in a fresh session with timeout and bounded retries.

        Raises:
            UpstreamUnavailable: If every attempt failed.
        """

        async def _attempt() -> T:
            async with self._sessionmaker() as session:
                return await fn(session)

        return await call_upstream(
            _attempt,
            policy=self._policy,
            timeout_s=self._timeout_s,
            operation=operation,
            retry_on=is_retryable_db_error,
        )
