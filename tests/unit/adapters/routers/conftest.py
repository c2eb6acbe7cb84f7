# tests/unit/adapters/routers/conftest.py
from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mend_safety.application.services.report_cache import ReportCache
from mend_safety.dependencies.safety import (
    get_context_store,
    get_report_cache,
    get_role_registry,
    get_safety_store,
)
from mend_safety.domain.entities.access import IdentityClaims
from mend_safety.infrastructure.auth.identity import require_identity
from mend_safety.main import create_app
from testkit.safety import (
    CountingGenerator,
    FrozenClock,
    InMemoryContextStore,
    InMemoryReportsRepository,
    InMemorySafetyStore,
    default_registry,
    identity,
    seeded_store,
)


@dataclass
class Harness:
    """App wired to in-memory fakes plus handles to inspect them."""

    app: FastAPI
    client: TestClient
    store: InMemorySafetyStore
    context: InMemoryContextStore
    generator: CountingGenerator
    caller: list[IdentityClaims] = field(default_factory=list)

    def act_as(self, role_id: int | None, employer_id: int | None = None) -> None:
        self.caller[:] = [identity(role_id, employer_id)]


@pytest.fixture
def harness() -> Harness:
    app = create_app()
    store = seeded_store()
    context = InMemoryContextStore()
    generator = CountingGenerator()
    cache = ReportCache(
        repository=InMemoryReportsRepository(),
        generator=generator,
        store=store,
        clock=FrozenClock(),
    )
    h = Harness(
        app=app,
        client=TestClient(app),
        store=store,
        context=context,
        generator=generator,
    )
    h.act_as(5, 8)

    app.dependency_overrides[require_identity] = lambda: h.caller[0]
    app.dependency_overrides[get_role_registry] = default_registry
    app.dependency_overrides[get_safety_store] = lambda: store
    app.dependency_overrides[get_context_store] = lambda: context
    app.dependency_overrides[get_report_cache] = lambda: cache
    return h
