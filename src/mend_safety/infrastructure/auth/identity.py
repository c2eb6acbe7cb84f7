# src/mend_safety/infrastructure/auth/identity.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Bearer JWT (HS256) identity dependency.

Purpose:
    Authenticate requests and return trusted ``IdentityClaims`` for routers.
    The role and assignment claims are the only source of tenant identity;
    nothing in the request body or query string can override them.

Claims:
    sub (str, required), sid (str, required), role_id (int),
    employer_id (int, optional), site_id (int, optional).

Layer:
    infrastructure/auth
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, Request, status

from mend_safety.config.settings import Settings, get_settings
from mend_safety.domain.entities.access import IdentityClaims
from mend_safety.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_bearer_token(request: Request) -> str:
    """Return the raw token from the ``Authorization`` header.

    Raises:
        HTTPException: 401 when the header is absent, malformed or empty.
    """
    auth = (request.headers.get("Authorization") or "").strip()
    if not auth.lower().startswith("bearer "):
        raise _unauthorized("Missing bearer token")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        raise _unauthorized("Missing token")
    return token


def decode_token(token: str, settings: Settings) -> Mapping[str, Any]:
    try:
        return jwt.decode(
            token,
            settings.auth_hs256_secret.get_secret_value(),
            algorithms=[settings.auth_algorithm],
            options={"verify_aud": False, "require": ["sub", "sid"]},
        )
    except jwt.PyJWTError as exc:
        logger.warning(
            "auth.jwt_invalid", extra={"extra": {"exc_type": type(exc).__name__}}
        )
        raise _unauthorized("Invalid token") from exc


def _int_claim(claims: Mapping[str, Any], name: str) -> int | None:
    raw = claims.get(name)
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise _unauthorized(f"Invalid claim: {name}")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise _unauthorized(f"Invalid claim: {name}") from exc


def claims_to_identity(claims: Mapping[str, Any]) -> IdentityClaims:
    """Map verified token claims to ``IdentityClaims``.

    Raises:
        HTTPException: 401 on missing or malformed claims.
    """
    sub = str(claims.get("sub") or "")
    sid = str(claims.get("sid") or "")
    if not sub or not sid:
        raise _unauthorized("Missing subject or session")
    return IdentityClaims(
        user_id=sub,
        session_id=sid,
        role_id=_int_claim(claims, "role_id"),
        assigned_employer_id=_int_claim(claims, "employer_id"),
        assigned_site_id=_int_claim(claims, "site_id"),
    )


async def require_identity(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> IdentityClaims:
    """FastAPI dependency returning the caller's verified identity."""
    identity = claims_to_identity(decode_token(extract_bearer_token(request), settings))
    logger.debug(
        "auth.authenticated",
        extra={"extra": {"user_id": identity.user_id, "role_id": identity.role_id}},
    )
    return identity
