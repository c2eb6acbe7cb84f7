# src/mend_safety/infrastructure/resilience/circuit_breaker.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Minimal async circuit breaker (in-memory).

State machine:
    - CLOSED    -> count consecutive failures; at the threshold go OPEN.
    - OPEN      -> fail fast with ``UpstreamUnavailable`` until the recovery
                   timeout expires; then HALF_OPEN.
    - HALF_OPEN -> allow a limited number of probe calls; success closes the
                   breaker, failure reopens it.
                   A cancelled probe counts as neither and frees its slot.

Process-local; used in front of the narrative generator so that a dead
endpoint is not hammered by every report request.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum

from mend_safety.domain.exceptions.safety import UpstreamUnavailable


class BreakerState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass
class CircuitBreaker:
    """Consecutive-failure circuit breaker."""

    failure_threshold: int = 5
    recovery_timeout_s: float = 30.0
    half_open_max_calls: int = 1
    clock: Callable[[], float] = time.monotonic

    state: BreakerState = BreakerState.CLOSED
    _failures: int = 0
    _opened_at: float = 0.0
    _half_open_calls: int = 0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def _before_call(self, key: str) -> None:
        async with self._lock:
            if self.state is BreakerState.OPEN:
                if self.clock() - self._opened_at < self.recovery_timeout_s:
                    raise UpstreamUnavailable("circuit open", details={"upstream": key})
                self.state = BreakerState.HALF_OPEN
                self._half_open_calls = 0
            if self.state is BreakerState.HALF_OPEN:
                if self._half_open_calls >= self.half_open_max_calls:
                    raise UpstreamUnavailable(
                        "circuit half-open probe limit reached", details={"upstream": key}
                    )
                self._half_open_calls += 1

    async def _record(self, *, success: bool) -> None:
        async with self._lock:
            if success:
                self.state = BreakerState.CLOSED
                self._failures = 0
                return
            if self.state is BreakerState.HALF_OPEN:
                self._trip()
                return
            self._failures += 1
            if self._failures >= self.failure_threshold:
                self._trip()

    def _release_probe(self) -> None:
        if self.state is BreakerState.HALF_OPEN and self._half_open_calls > 0:
            self._half_open_calls -= 1

    def _trip(self) -> None:
        self.state = BreakerState.OPEN
        self._opened_at = self.clock()
        self._failures = 0

    @asynccontextmanager
    async def guard(self, key: str) -> AsyncIterator[None]:
        """Guard one call.

        Raises:
            UpstreamUnavailable: If the breaker is open.
        """
        await self._before_call(key)
        try:
            yield
        except Exception:
            await self._record(success=False)
            raise
        except BaseException:
            # Cancelled calls prove nothing; hand the probe slot back.
            self._release_probe()
            raise
        await self._record(success=True)
