# src/mend_safety/config/__init__.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""
Config package export.

Keeps import sites clean and stable:
    from mend_safety.config import get_settings, Settings
"""

from __future__ import annotations

from .settings import RoleConfig, Settings, get_settings

__all__ = ["RoleConfig", "Settings", "get_settings"]
