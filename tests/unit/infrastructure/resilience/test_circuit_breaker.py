# tests/unit/infrastructure/resilience/test_circuit_breaker.py
from __future__ import annotations

import asyncio

import pytest

from mend_safety.domain.exceptions.safety import UpstreamUnavailable
from mend_safety.infrastructure.resilience.circuit_breaker import BreakerState, CircuitBreaker


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


async def _fail(breaker: CircuitBreaker) -> None:
    with pytest.raises(RuntimeError, match="boom"):
        async with breaker.guard("narrative"):
            raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_success_keeps_breaker_closed() -> None:
    breaker = CircuitBreaker(failure_threshold=2)

    async with breaker.guard("narrative"):
        pass

    assert breaker.state is BreakerState.CLOSED


@pytest.mark.asyncio
async def test_trips_open_after_consecutive_failures_and_fails_fast() -> None:
    breaker = CircuitBreaker(failure_threshold=2, recovery_timeout_s=60.0, clock=_Clock())

    await _fail(breaker)
    assert breaker.state is BreakerState.CLOSED
    await _fail(breaker)
    assert breaker.state is BreakerState.OPEN

    called = False
    with pytest.raises(UpstreamUnavailable, match="circuit open"):
        async with breaker.guard("narrative"):
            called = True

    assert not called


@pytest.mark.asyncio
async def test_half_open_probe_success_closes() -> None:
    clock = _Clock()
    breaker = CircuitBreaker(failure_threshold=1, recovery_timeout_s=5.0, clock=clock)
    await _fail(breaker)

    clock.now += 5.0
    async with breaker.guard("narrative"):
        assert breaker.state is BreakerState.HALF_OPEN

    assert breaker.state is BreakerState.CLOSED


@pytest.mark.asyncio
async def test_half_open_probe_failure_reopens() -> None:
    clock = _Clock()
    breaker = CircuitBreaker(failure_threshold=1, recovery_timeout_s=5.0, clock=clock)
    await _fail(breaker)

    clock.now += 6.0
    await _fail(breaker)

    assert breaker.state is BreakerState.OPEN
    with pytest.raises(UpstreamUnavailable):
        async with breaker.guard("narrative"):
            pass


@pytest.mark.asyncio
async def test_cancelled_half_open_call_frees_its_slot() -> None:
    clock = _Clock()
    breaker = CircuitBreaker(failure_threshold=1, recovery_timeout_s=5.0, clock=clock)
    await _fail(breaker)
    clock.now += 5.0
    entered = asyncio.Event()

    async def slow_trial() -> None:
        async with breaker.guard("narrative"):
            entered.set()
            await asyncio.sleep(10)

    task = asyncio.create_task(slow_trial())
    await entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert breaker.state is BreakerState.HALF_OPEN
    async with breaker.guard("narrative"):
        pass
    assert breaker.state is BreakerState.CLOSED
