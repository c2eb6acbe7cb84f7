# src/mend_safety/infrastructure/caching/report_lock.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Redis ``SET NX EX`` lock guarding report generation across processes.

Design:
    * Acquire stores a random token with an expiry; release deletes the key
      only if it still holds our token (compare-and-delete script).
    * The holder extends the expiry while it works (compare-and-pexpire
      script) so a long generation does not outlive its lock.
    * Lock failures surface as ``UpstreamUnavailable``; callers never fall
      back to generating without the lock.
"""

from __future__ import annotations

import secrets

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from mend_safety.infrastructure.caching.redis_client import RedisClient
from mend_safety.infrastructure.resilience.retry import RetryPolicy, call_upstream

_NAMESPACE = "mend:report-lock:v1"
_DEFAULT_POLICY = RetryPolicy(attempts=3, base_s=0.05, cap_s=0.5)

_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""

_EXTEND_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('pexpire', KEYS[1], ARGV[2])
end
return 0
"""


def _retryable(exc: Exception) -> bool:
    return isinstance(exc, RedisConnectionError | RedisTimeoutError | ConnectionError)


class RedisReportLock:
    """ReportLockPort implementation on redis."""

    def __init__(
        self,
        client: RedisClient,
        *,
        policy: RetryPolicy = _DEFAULT_POLICY,
        timeout_s: float = 2.0,
    ) -> None:
        self._client = client
        self._policy = policy
        self._timeout_s = timeout_s

    @staticmethod
    def key(lock_key: str) -> str:
        return f"{_NAMESPACE}:{lock_key}"

    async def try_acquire(self, key: str, *, ttl_s: int) -> str | None:
        token = secrets.token_hex(16)
        acquired = await call_upstream(
            lambda: self._client.set(self.key(key), token, ex=ttl_s, nx=True),
            policy=self._policy,
            timeout_s=self._timeout_s,
            operation="report_lock.acquire",
            retry_on=_retryable,
        )
        return token if acquired else None

    async def release(self, key: str, token: str) -> None:
        await call_upstream(
            lambda: self._client.eval(_RELEASE_SCRIPT, 1, self.key(key), token),
            policy=self._policy,
            timeout_s=self._timeout_s,
            operation="report_lock.release",
            retry_on=_retryable,
        )

    async def extend(self, key: str, token: str, *, ttl_s: int) -> bool:
        extended = await call_upstream(
            lambda: self._client.eval(_EXTEND_SCRIPT, 1, self.key(key), token, ttl_s * 1000),
            policy=self._policy,
            timeout_s=self._timeout_s,
            operation="report_lock.extend",
            retry_on=_retryable,
        )
        return bool(extended)
