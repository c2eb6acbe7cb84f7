# src/mend_safety/infrastructure/caching/context_store.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Redis-backed staff employer context, keyed by session id.

Design:
    * Key: ``mend:context:v1:<session_id>``; value: employer id as text.
    * Every write refreshes the TTL, so the context never outlives the
      configured session lifetime. Sign-out deletes the key.
    * All commands go through the bounded retry wrapper; exhaustion raises
      ``UpstreamUnavailable``.
"""

from __future__ import annotations

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from mend_safety.infrastructure.caching.redis_client import RedisClient
from mend_safety.infrastructure.logging.logger import get_json_logger
from mend_safety.infrastructure.resilience.retry import RetryPolicy, call_upstream

logger = get_json_logger(__name__)

_NAMESPACE = "mend:context:v1"
_DEFAULT_POLICY = RetryPolicy(attempts=3, base_s=0.05, cap_s=0.5)


def _retryable(exc: Exception) -> bool:
    return isinstance(exc, RedisConnectionError | RedisTimeoutError | ConnectionError)


class RedisContextStore:
    """ContextStorePort implementation on redis."""

    def __init__(
        self,
        client: RedisClient,
        *,
        ttl_s: int,
        policy: RetryPolicy = _DEFAULT_POLICY,
        timeout_s: float = 2.0,
    ) -> None:
        self._client = client
        self._ttl_s = ttl_s
        self._policy = policy
        self._timeout_s = timeout_s

    @staticmethod
    def key(session_id: str) -> str:
        return f"{_NAMESPACE}:{session_id}"

    async def get(self, session_id: str) -> int | None:
        raw = await call_upstream(
            lambda: self._client.get(self.key(session_id)),
            policy=self._policy,
            timeout_s=self._timeout_s,
            operation="context.get",
            retry_on=_retryable,
        )
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            # Unreadable context is treated as absent and removed.
            logger.warning("context.corrupt_value", extra={"extra": {"key": self.key(session_id)}})
            await self.delete(session_id)
            return None

    async def put(self, session_id: str, employer_id: int) -> None:
        await call_upstream(
            lambda: self._client.set(self.key(session_id), str(employer_id), ex=self._ttl_s),
            policy=self._policy,
            timeout_s=self._timeout_s,
            operation="context.put",
            retry_on=_retryable,
        )

    async def delete(self, session_id: str) -> None:
        await call_upstream(
            lambda: self._client.delete(self.key(session_id)),
            policy=self._policy,
            timeout_s=self._timeout_s,
            operation="context.delete",
            retry_on=_retryable,
        )
