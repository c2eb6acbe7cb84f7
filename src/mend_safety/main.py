# src/mend_safety/main.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Application entry.

Synopsis:
    FastAPI bootstrap that wires middleware, exception handlers and routers.
    Provides an application factory (``create_app``) and a module-level eager
    app (``app``) for tooling.

Design:
    * Bootstrap only: no business logic lives here.
    * Lifespan initializes DB, Redis, the shared HTTP client and the
      process-wide report cache, and tears them down safely.
    * Root JSON logging is configured at import time.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import APIRoute

from mend_safety.adapters.routers import api_router
from mend_safety.config.settings import Settings, get_settings
from mend_safety.dependencies.core.bootstrap import bootstrap
from mend_safety.infrastructure.http.errors import install_exception_handlers
from mend_safety.infrastructure.logging.logger import configure_root_logging, get_json_logger
from mend_safety.infrastructure.middleware.request_id import RequestIdMiddleware

configure_root_logging()
logger = get_json_logger(__name__)

SERVICE_NAME = "mend-safety-api"


def _stable_operation_id(route: APIRoute) -> str:
    """Deterministic operationId, e.g. ``get__v1_safety_metrics``."""
    methods = ",".join(sorted(route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "")
    return f"{methods.lower()}_{path.lower()}"


@asynccontextmanager
async def runtime_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize and tear down shared infrastructure via the core bootstrap."""
    async with bootstrap(app) as state:
        app.state.settings = state.settings
        app.state.http_client = state.http_client
        yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings: Settings = get_settings()
    version = os.getenv("SERVICE_VERSION") or "0.1.0"

    app = FastAPI(
        title="Mend Safety API",
        version=version,
        description="Multi-tenant workplace safety metrics, rankings and reports.",
        lifespan=runtime_lifespan,
        generate_unique_id_function=_stable_operation_id,
    )

    install_exception_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    app.include_router(api_router)

    logger.info(
        "service_startup",
        extra={
            "extra": {
                "service": SERVICE_NAME,
                "env": settings.environment.value,
                "version": version,
            }
        },
    )
    return app


# Eager app for tools (uvicorn mend_safety.main:app).
app: FastAPI = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "mend_safety.main:create_app",
        factory=True,
        host="127.0.0.1",
        port=int(os.getenv("PORT", "8080")),
    )
