# src/mend_safety/adapters/routers/__init__.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Routers package export (adapters layer).

Provides the aggregate ``api_router`` the application mounts at startup,
keeping ``main.py`` decoupled from router file layout.
"""

from __future__ import annotations

from .api_router import router as api_router

__all__ = ["api_router"]
