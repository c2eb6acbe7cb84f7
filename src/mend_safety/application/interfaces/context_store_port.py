# src/mend_safety/application/interfaces/context_store_port.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Session context storage port.

Purpose:
    Persist the staff-selected "current employer" for one authenticated
    session. Authorization is enforced by the application service, not by
    implementations of this port.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Protocol


class ContextStorePort(Protocol):
    """Key/value store of employer context keyed by session id."""

    async def get(self, session_id: str) -> int | None:
        """Return the stored employer id for the session, if any."""

    async def put(self, session_id: str, employer_id: int) -> None:
        """Store the employer id for the session (bounded by session lifetime)."""

    async def delete(self, session_id: str) -> None:
        """Remove any stored context for the session."""
