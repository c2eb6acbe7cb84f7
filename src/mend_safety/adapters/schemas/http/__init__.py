# src/mend_safety/adapters/schemas/http/__init__.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""HTTP schemas (adapters layer)."""

from mend_safety.adapters.schemas.http.envelopes import (
    ErrorEnvelope,
    ErrorObject,
    SuccessEnvelope,
)

__all__ = ["ErrorEnvelope", "ErrorObject", "SuccessEnvelope"]
