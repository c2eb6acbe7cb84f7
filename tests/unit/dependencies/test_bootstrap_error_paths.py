# tests/unit/dependencies/test_bootstrap_error_paths.py
from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI

import mend_safety.infrastructure.caching.redis_client as redis_client
import mend_safety.infrastructure.database.session as db_session
from mend_safety.application.services.report_cache import ReportCache
from mend_safety.config.settings import get_settings
from mend_safety.dependencies.core.bootstrap import bootstrap, build_narrative_generator
from mend_safety.infrastructure.external_apis.narrative.client import HttpNarrativeGenerator
from mend_safety.infrastructure.external_apis.narrative.template import (
    TemplateNarrativeGenerator,
)


def _patch_infra(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(db_session, "init_engine_and_sessionmaker", lambda s: None)
    monkeypatch.setattr(db_session, "get_sessionmaker", lambda: object())
    monkeypatch.setattr(redis_client, "init_redis", lambda s: None)
    monkeypatch.setattr(redis_client, "get_redis_client", lambda: object())


@pytest.mark.asyncio
async def test_bootstrap_exposes_one_report_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_infra(monkeypatch)
    app = FastAPI()

    async def _noop() -> None:
        return None

    monkeypatch.setattr(redis_client, "close_redis", _noop)
    monkeypatch.setattr(db_session, "dispose_engine", _noop)

    async with bootstrap(app) as state:
        assert isinstance(state.report_cache, ReportCache)
        assert app.state.report_cache is state.report_cache


@pytest.mark.asyncio
async def test_bootstrap_cleans_up_on_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Every shutdown step runs even when the previous one fails."""
    _patch_infra(monkeypatch)
    app = FastAPI()
    closed = {"http": False, "redis": False, "db": False}

    async def _fake_aclose(*args, **kwargs):
        closed["http"] = True
        raise RuntimeError("boom-http")

    async def _fake_close_redis():
        closed["redis"] = True
        raise RuntimeError("boom-redis")

    async def _fake_dispose():
        closed["db"] = True
        raise RuntimeError("boom-db")

    monkeypatch.setattr(redis_client, "close_redis", _fake_close_redis)
    monkeypatch.setattr(db_session, "dispose_engine", _fake_dispose)

    async with bootstrap(app) as state:
        monkeypatch.setattr(state.http_client, "aclose", _fake_aclose, raising=False)

    assert closed == {"http": True, "redis": True, "db": True}


@pytest.mark.asyncio
async def test_narrative_generator_selection(monkeypatch: pytest.MonkeyPatch) -> None:
    async with httpx.AsyncClient() as http:
        generator = build_narrative_generator(get_settings(), http)
        assert isinstance(generator, TemplateNarrativeGenerator)

        monkeypatch.setenv("NARRATIVE_API_URL", "https://llm.example.test/v1/chat/completions")
        get_settings.cache_clear()
        assert isinstance(build_narrative_generator(get_settings(), http), HttpNarrativeGenerator)
