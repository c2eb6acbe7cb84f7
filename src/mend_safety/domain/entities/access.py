# src/mend_safety/domain/entities/access.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Access-control entities.

Purpose:
    Model configured roles, the identity claims supplied by the identity
    provider for each authenticated request, and the scope decision produced
    by the resolver.

Design:
    - Frozen dataclasses with ``__post_init__`` invariant checks.
    - ``ScopeDecision`` is a tagged value (``ScopeKind``) rather than a bare
      optional integer so that "no restriction" and "denied" can never be
      confused with each other.
    - Every data-fetch entry point accepts a ``ScopeDecision``; raw employer
      ids from requests never reach the store.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass

from mend_safety.domain.enums.access import RoleCapability, ScopeKind
from mend_safety.domain.exceptions.safety import InvalidInput, ScopeDenied

__all__ = ["Role", "IdentityClaims", "ScopeDecision"]


@dataclass(frozen=True)
class Role:
    """A configured platform role.

    Attributes:
        role_id: Identifier carried in identity claims.
        name: Stable machine name (e.g. ``builder_admin``). Display only.
        capability: Whether the role sees across tenants or is pinned to one.
    """

    role_id: int
    name: str
    capability: RoleCapability

    def __post_init__(self) -> None:
        if self.role_id <= 0:
            raise ValueError("role_id must be positive")
        if not self.name:
            raise ValueError("role name must be non-empty")

    @property
    def is_staff(self) -> bool:
        return self.capability is RoleCapability.STAFF

    @property
    def is_tenant_scoped(self) -> bool:
        return self.capability is RoleCapability.TENANT_SCOPED


@dataclass(frozen=True)
class IdentityClaims:
    """Trusted claim set for one authenticated session.

    Attributes:
        user_id: Subject identifier from the identity provider.
        session_id: Authenticated session identifier; keys the context store.
        role_id: Role identifier; resolved against the role registry.
        assigned_employer_id: Employer the user is pinned to, if any.
        assigned_site_id: Site the user is pinned to, if any.
    """

    user_id: str
    session_id: str
    role_id: int | None
    assigned_employer_id: int | None = None
    assigned_site_id: int | None = None

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id must be non-empty")
        if not self.session_id:
            raise ValueError("session_id must be non-empty")


@dataclass(frozen=True)
class ScopeDecision:
    """Effective, trusted employer restriction for a request.

    Attributes:
        kind: EMPLOYER, ALL or DENIED.
        employer_id: Employer restriction when ``kind`` is EMPLOYER.
        reason: Machine-readable denial reason when ``kind`` is DENIED.
    """

    kind: ScopeKind
    employer_id: int | None = None
    reason: str | None = None

    def __post_init__(self) -> None:
        if self.kind is ScopeKind.EMPLOYER:
            if self.employer_id is None or self.employer_id <= 0:
                raise ValueError("EMPLOYER scope requires a positive employer_id")
        elif self.employer_id is not None:
            raise ValueError(f"{self.kind.value} scope must not carry an employer_id")
        if self.kind is ScopeKind.DENIED and not self.reason:
            raise ValueError("DENIED scope requires a reason")

    @classmethod
    def for_employer(cls, employer_id: int) -> ScopeDecision:
        return cls(ScopeKind.EMPLOYER, employer_id=employer_id)

    @classmethod
    def all_employers(cls) -> ScopeDecision:
        return cls(ScopeKind.ALL)

    @classmethod
    def denied(cls, reason: str) -> ScopeDecision:
        return cls(ScopeKind.DENIED, reason=reason)

    @property
    def is_denied(self) -> bool:
        return self.kind is ScopeKind.DENIED

    @property
    def is_all(self) -> bool:
        return self.kind is ScopeKind.ALL

    def permits(self, employer_id: int) -> bool:
        """Return True if rows owned by ``employer_id`` are inside this scope."""
        if self.kind is ScopeKind.ALL:
            return True
        if self.kind is ScopeKind.EMPLOYER:
            return self.employer_id == employer_id
        return False

    def require_readable(self) -> ScopeDecision:
        """Return ``self`` unless the decision is DENIED.

        Raises:
            ScopeDenied: If the scope was denied.
        """
        if self.kind is ScopeKind.DENIED:
            raise ScopeDenied("access denied", details={"reason": self.reason})
        return self

    def require_single_employer(self) -> int:
        """Return the employer id of an EMPLOYER scope.

        Raises:
            ScopeDenied: If the scope was denied.
            InvalidInput: If the scope spans all employers.
        """
        self.require_readable()
        if self.employer_id is None:
            raise InvalidInput("an employer_id is required for this operation")
        return self.employer_id

    def describe(self) -> str:
        """Short label used in logs and HTTP payloads."""
        if self.kind is ScopeKind.EMPLOYER:
            return f"employer:{self.employer_id}"
        return self.kind.value
