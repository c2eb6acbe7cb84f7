# src/mend_safety/domain/services/scope_resolver.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Tenant scope resolution.

Purpose:
    Decide which employer's rows a caller may read, from the caller's role,
    assigned employer, requested filter and (staff only) session context.

Design:
    - ``resolve_scope`` is pure and total: no I/O, no logging, no exceptions
      for any combination of inputs. Failures are returned as DENIED.
    - Capability comes only from the configured ``RoleRegistry``. Role names
      are never inspected.
    - Fails closed: unknown roles and tenant roles without an assignment are
      denied, never widened to ALL.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from mend_safety.domain.entities.access import Role, ScopeDecision

__all__ = [
    "RoleRegistry",
    "resolve_scope",
    "DENY_UNKNOWN_ROLE",
    "DENY_MISSING_ASSIGNMENT",
    "DENY_INVALID_EMPLOYER_FILTER",
]

DENY_UNKNOWN_ROLE = "unknown_role"
DENY_MISSING_ASSIGNMENT = "missing_employer_assignment"
DENY_INVALID_EMPLOYER_FILTER = "invalid_employer_filter"


class RoleRegistry:
    """Closed, configured set of roles keyed by role id."""

    def __init__(self, roles: Iterable[Role]) -> None:
        by_id: dict[int, Role] = {}
        for role in roles:
            if role.role_id in by_id:
                raise ValueError(f"duplicate role_id in role table: {role.role_id}")
            by_id[role.role_id] = role
        self._roles: Mapping[int, Role] = MappingProxyType(by_id)

    def lookup(self, role_id: int | None) -> Role | None:
        """Return the configured role for ``role_id`` or ``None`` if unknown."""
        if role_id is None:
            return None
        return self._roles.get(role_id)

    def __iter__(self) -> Iterator[Role]:
        return iter(sorted(self._roles.values(), key=lambda r: r.role_id))

    def __len__(self) -> int:
        return len(self._roles)


def resolve_scope(
    role: Role | None,
    assigned_employer_id: int | None,
    requested_employer_id: int | None,
    context_employer_id: int | None,
) -> ScopeDecision:
    """Resolve the effective employer scope for a request.

    Args:
        role: Caller's configured role, or ``None`` when the role id is unknown.
        assigned_employer_id: Employer from trusted identity claims.
        requested_employer_id: Employer filter supplied with the request.
        context_employer_id: Staff-selected employer stored for the session.

    Returns:
        ScopeDecision: EMPLOYER, ALL or DENIED.

    Notes:
        Tenant-scoped callers always get their assigned employer. A requested
        or context employer that differs is overridden, not rejected.
        A non-positive staff filter is denied rather than widened to ALL.
    """
    if role is None:
        return ScopeDecision.denied(DENY_UNKNOWN_ROLE)

    if role.is_tenant_scoped:
        if assigned_employer_id is None or assigned_employer_id <= 0:
            return ScopeDecision.denied(DENY_MISSING_ASSIGNMENT)
        return ScopeDecision.for_employer(assigned_employer_id)

    if role.is_staff:
        chosen = requested_employer_id if requested_employer_id is not None else context_employer_id
        if chosen is None:
            return ScopeDecision.all_employers()
        if chosen <= 0:
            return ScopeDecision.denied(DENY_INVALID_EMPLOYER_FILTER)
        return ScopeDecision.for_employer(chosen)

    return ScopeDecision.denied(DENY_UNKNOWN_ROLE)
