# src/mend_safety/domain/value_objects/identifiers.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Identifier validation helpers.

Layer:
    domain/value_objects
"""

from __future__ import annotations

from typing import Any

from mend_safety.domain.exceptions.safety import InvalidInput

__all__ = ["require_positive_id", "optional_positive_id"]


def require_positive_id(value: Any, *, field: str) -> int:
    """Validate a numeric entity identifier.

    Args:
        value: Candidate identifier.
        field: Name of the field, echoed in the error details.

    Returns:
        The identifier as an ``int``.

    Raises:
        InvalidInput: If the value is not a positive integer.
    """
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInput(f"{field} must be a positive integer", details={field: value})
    return value


def optional_positive_id(value: Any, *, field: str) -> int | None:
    """Like :func:`require_positive_id` but passes ``None`` through."""
    if value is None:
        return None
    return require_positive_id(value, field=field)
