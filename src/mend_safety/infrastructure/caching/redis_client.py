# src/mend_safety/infrastructure/caching/redis_client.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Async Redis client factory.

Design notes:
    * Provides a small Protocol (``RedisClient``) used by the context store
      and report lock adapters.
    * Uses redis.asyncio for the concrete implementation.
    * Loop-aware: a client created on another event loop is replaced rather
      than reused.
    * Test suites may inject a fakeredis client by assigning the module-level
      ``_client``; it is then never replaced or closed.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import Any, Protocol, cast, runtime_checkable

import redis.asyncio as aioredis

from mend_safety.config.settings import Settings, get_settings

__all__ = ["RedisClient", "init_redis", "close_redis", "get_redis_client"]


@runtime_checkable
class RedisClient(Protocol):
    """Subset of Redis commands used by the application."""

    async def get(self, key: str) -> Any: ...
    async def set(
        self,
        key: str,
        value: Any,
        *,
        ex: int | None = None,
        nx: bool = False,
    ) -> Any: ...
    async def delete(self, *keys: str) -> Any: ...
    async def eval(self, script: str, numkeys: int, *keys_and_args: Any) -> Any: ...
    async def ping(self) -> Any: ...


_client: RedisClient | Any | None = None
_client_loop_id: int | None = None


def _current_loop_id() -> int | None:
    try:
        return id(asyncio.get_running_loop())
    except RuntimeError:
        return None


def _is_fake_client(client: Any | None) -> bool:
    return client is not None and type(client).__module__.startswith("fakeredis")


def init_redis(settings: Settings) -> None:
    """Initialize the global client for the current event loop (idempotent per loop)."""
    global _client, _client_loop_id

    if _is_fake_client(_client):
        return
    loop_id = _current_loop_id()
    if _client is not None and _client_loop_id == loop_id:
        return

    _from_url: Any = aioredis.from_url
    _client = _from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout_s,
        socket_connect_timeout=settings.redis_socket_timeout_s,
    )
    _client_loop_id = loop_id


async def close_redis() -> None:
    """Close the global client at shutdown (best-effort)."""
    global _client, _client_loop_id

    if _client is not None and not _is_fake_client(_client):
        if _client_loop_id is None or _current_loop_id() == _client_loop_id:
            with suppress(RuntimeError, ConnectionError):
                await _client.aclose()
    _client = None
    _client_loop_id = None


def get_redis_client() -> RedisClient:
    """Return the shared client, initializing lazily (loop-aware).

    Raises:
        RuntimeError: If the client could not be initialized.
    """
    if _is_fake_client(_client):
        return cast(RedisClient, _client)

    loop_id = _current_loop_id()
    if _client is None or (
        _client_loop_id is not None and loop_id is not None and loop_id != _client_loop_id
    ):
        init_redis(get_settings())

    if _client is None:
        raise RuntimeError("Redis client not initialized (init_redis failed)")
    return cast(RedisClient, _client)
