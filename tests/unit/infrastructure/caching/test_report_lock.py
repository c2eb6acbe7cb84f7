# tests/unit/infrastructure/caching/test_report_lock.py
from __future__ import annotations

import pytest

from mend_safety.infrastructure.caching.redis_client import get_redis_client
from mend_safety.infrastructure.caching.report_lock import RedisReportLock


@pytest.mark.asyncio
async def test_lock_is_exclusive_until_released(fake_redis) -> None:
    lock = RedisReportLock(get_redis_client())

    token = await lock.try_acquire("8:2025-03", ttl_s=30)
    assert token is not None
    assert await lock.try_acquire("8:2025-03", ttl_s=30) is None
    assert await lock.try_acquire("8:2025-04", ttl_s=30) is not None

    await lock.release("8:2025-03", token)
    assert await lock.try_acquire("8:2025-03", ttl_s=30) is not None


@pytest.mark.asyncio
async def test_release_with_stale_token_keeps_new_holder(fake_redis) -> None:
    lock = RedisReportLock(get_redis_client())
    token = await lock.try_acquire("8:2025-03", ttl_s=30)
    assert token is not None

    await lock.release("8:2025-03", "someone-else")

    assert await fake_redis.get(RedisReportLock.key("8:2025-03")) == token


@pytest.mark.asyncio
async def test_lock_expires(fake_redis) -> None:
    lock = RedisReportLock(get_redis_client())

    await lock.try_acquire("8:2025-03", ttl_s=30)

    ttl = await fake_redis.ttl(RedisReportLock.key("8:2025-03"))
    assert 0 < ttl <= 30


@pytest.mark.asyncio
async def test_extend_resets_expiry_only_for_owner(fake_redis) -> None:
    lock = RedisReportLock(get_redis_client())
    token = await lock.try_acquire("8:2025-03", ttl_s=5)
    assert token is not None

    assert await lock.extend("8:2025-03", token, ttl_s=60)
    assert 5 < await fake_redis.ttl(RedisReportLock.key("8:2025-03")) <= 60

    assert not await lock.extend("8:2025-03", "someone-else", ttl_s=600)
    assert await fake_redis.ttl(RedisReportLock.key("8:2025-03")) <= 60


@pytest.mark.asyncio
async def test_extend_after_expiry_reports_lost_lock(fake_redis) -> None:
    lock = RedisReportLock(get_redis_client())
    token = await lock.try_acquire("8:2025-03", ttl_s=30)
    assert token is not None
    await fake_redis.delete(RedisReportLock.key("8:2025-03"))

    assert not await lock.extend("8:2025-03", token, ttl_s=30)
    assert await fake_redis.get(RedisReportLock.key("8:2025-03")) is None
