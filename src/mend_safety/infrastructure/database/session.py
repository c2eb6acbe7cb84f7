# src/mend_safety/infrastructure/database/session.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Async SQLAlchemy engine and session factory.

Lifecycle:
    * ``init_engine_and_sessionmaker(settings)`` at app startup (lifespan).
    * Repositories receive ``get_sessionmaker()`` and open one short-lived
      session per store call.
    * ``dispose_engine()`` during shutdown.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mend_safety.config.settings import Settings, get_settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def init_engine_and_sessionmaker(settings: Settings) -> None:
    """Initialize the global async engine and sessionmaker (idempotent).

    Raises:
        ValueError: If ``database_url`` is empty.
    """
    global _engine, _sessionmaker

    if not settings.database_url:
        raise ValueError("database_url must be configured")
    if _engine is not None:
        return

    _engine = create_async_engine(url=settings.database_url, pool_pre_ping=True, echo=False)
    _sessionmaker = async_sessionmaker(bind=_engine, expire_on_commit=False, class_=AsyncSession)


async def dispose_engine() -> None:
    """Dispose the global engine at application shutdown."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the async sessionmaker, initializing lazily when lifespan was skipped."""
    if _sessionmaker is None:
        init_engine_and_sessionmaker(get_settings())
    assert _sessionmaker is not None
    return _sessionmaker
