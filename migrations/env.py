# migrations/env.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Alembic environment (migrations/env.py).

Purpose:
    Configure Alembic for the safety service's SQLAlchemy models with
    deterministic behavior across offline and online (async) runs.

Design:
    - Loads the database URL from ``DATABASE_URL`` or alembic.ini.
    - Refuses to run if ENVIRONMENT is missing (prevents "wrong DB" mistakes).
    - Uses the project Declarative Base for autogenerate (``target_metadata``).
    - Emits masked connection information to the log (no credentials).

Usage:
    ENVIRONMENT=development alembic upgrade head
    ENVIRONMENT=development alembic upgrade head --sql
"""

from __future__ import annotations

import asyncio
import logging
import logging.config
import os
from typing import Any
from urllib.parse import urlparse, urlunparse

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from mend_safety.infrastructure.database.models.safety import Base

config = context.config

if config.config_file_name is not None:
    logging.config.fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata


def _mask_url(url: str) -> str:
    """Return a masked representation of a database URL for safe logging."""
    parts = urlparse(url)
    user = parts.username or ""
    host = parts.hostname or ""
    port = f":{parts.port}" if parts.port else ""
    auth = f"{user}:****@" if user else ""
    return urlunparse((parts.scheme, f"{auth}{host}{port}", parts.path or "", "", "", ""))


def _get_db_url() -> str:
    """Resolve the database URL.

    Raises:
        RuntimeError: If no database URL can be resolved.
    """
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("Database URL not configured (DATABASE_URL or sqlalchemy.url).")
    return url


def _require_environment() -> str:
    env = (os.getenv("ENVIRONMENT") or "").strip().lower()
    if not env:
        raise RuntimeError(
            "ENVIRONMENT is required for migrations (e.g. ENVIRONMENT=development). "
            "Refusing to run without an explicit environment."
        )
    return env


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (SQL script output)."""
    env = _require_environment()
    url = _get_db_url()
    logger.info("migrations.offline env=%s url=%s", env, _mask_url(url))

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def _configure_and_run(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
    with context.begin_transaction():
        context.run_migrations()


async def _run_migrations_async() -> None:
    env = _require_environment()
    url = _get_db_url()
    logger.info("migrations.online env=%s url=%s", env, _mask_url(url))

    kwargs: dict[str, Any] = {"echo": os.getenv("ECHO_SQL") == "1", "poolclass": pool.NullPool}
    connectable: AsyncEngine = create_async_engine(url, **kwargs)
    async with connectable.connect() as connection:
        await connection.run_sync(_configure_and_run)
    await connectable.dispose()


def run_migrations_online() -> None:
    """Entry point used by Alembic for online migrations."""
    asyncio.run(_run_migrations_async())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
