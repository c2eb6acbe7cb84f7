# src/mend_safety/domain/interfaces/gateways/narrative_generator.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Narrative generator gateway interface.

Layer:
    domain/interfaces/gateways
"""

from __future__ import annotations

from typing import Protocol

from mend_safety.domain.entities.report import NarrativeRequest


class NarrativeGenerator(Protocol):
    """Turns computed metrics into free-text safety commentary."""

    async def generate(self, request: NarrativeRequest) -> str:
        """Return narrative text for ``request``.

        Raises:
            UpstreamUnavailable: If the generator fails after bounded retries.
        """
