# src/mend_safety/application/interfaces/report_lock_port.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Cross-process report generation lock port.

Layer:
    application/interfaces
"""

from __future__ import annotations

from typing import Protocol


class ReportLockPort(Protocol):
    """Exclusive, expiring lock keyed by report key."""

    async def try_acquire(self, key: str, *, ttl_s: int) -> str | None:
        """Attempt to take the lock.

        Returns:
            An ownership token on success, ``None`` if another holder exists.
        """

    async def release(self, key: str, token: str) -> None:
        """Release the lock if ``token`` still owns it."""

    async def extend(self, key: str, token: str, *, ttl_s: int) -> bool:
        """Reset the expiry to ``ttl_s`` if ``token`` still owns the lock.

        Returns:
            ``False`` when the lock expired or passed to another holder.
        """
