# src/mend_safety/domain/enums/access.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Access-control enums.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum


class RoleCapability(str, Enum):
    """Capability flag attached to every configured role."""

    STAFF = "staff"
    TENANT_SCOPED = "tenant_scoped"


class ScopeKind(str, Enum):
    """Outcome variants of scope resolution."""

    EMPLOYER = "employer"
    ALL = "all"
    DENIED = "denied"
