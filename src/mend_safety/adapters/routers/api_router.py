# src/mend_safety/adapters/routers/api_router.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Aggregate router mounting every v1 safety router."""

from __future__ import annotations

from fastapi import APIRouter

from mend_safety.adapters.routers.context_router import router as context_router
from mend_safety.adapters.routers.metrics_router import router as metrics_router
from mend_safety.adapters.routers.safety_router import router as safety_router

router = APIRouter()
router.include_router(metrics_router)
router.include_router(safety_router)
router.include_router(context_router)
