# tests/unit/infrastructure/http/test_errors.py
from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient
from pydantic import BaseModel

from mend_safety.domain.exceptions.base import DomainError
from mend_safety.domain.exceptions.safety import (
    ContextForbidden,
    InvalidInput,
    ScopeDenied,
    UpstreamUnavailable,
)
from mend_safety.infrastructure.http import errors


class Payload(BaseModel):
    value: int


class _Unmapped(DomainError):
    code = "SOMETHING_NEW"


def test_error_envelope_omits_empty_optional_fields() -> None:
    payload = errors.error_envelope(code="X", http_status=400, message="bad")

    assert payload == {"error": {"code": "X", "http_status": 400, "message": "bad"}}


def test_error_envelope_includes_optional_fields() -> None:
    payload = errors.error_envelope(
        code="X", http_status=400, message="bad", details={"a": 1}, trace_id="t-1"
    )

    assert payload["error"]["details"] == {"a": 1}
    assert payload["error"]["trace_id"] == "t-1"


def _app() -> FastAPI:
    app = FastAPI()
    errors.install_exception_handlers(app)

    @app.middleware("http")
    async def add_trace_id(request: Request, call_next):  # type: ignore[no-untyped-def]
        request.state.trace_id = "trace-xyz"
        return await call_next(request)

    raising: dict[str, Exception] = {
        "denied": ScopeDenied("access denied", details={"reason": "unknown_role"}),
        "forbidden": ContextForbidden("staff only"),
        "invalid": InvalidInput("month must use the YYYY-MM format"),
        "upstream": UpstreamUnavailable("store down", details={"operation": "x"}),
        "unmapped": _Unmapped("new"),
        "auth": HTTPException(401, "Missing bearer token", {"WWW-Authenticate": "Bearer"}),
        "boom": RuntimeError("boom"),
    }

    @app.get("/raise/{name}")
    async def raise_route(name: str) -> None:
        raise raising[name]

    @app.post("/validation")
    async def validation_route(body: Payload) -> dict[str, Any]:
        return {"value": body.value}

    return app


def _error(client: TestClient, name: str) -> tuple[int, dict[str, Any]]:
    resp = client.get(f"/raise/{name}")
    return resp.status_code, resp.json()["error"]


def test_domain_errors_map_to_status_by_code() -> None:
    client = TestClient(_app())

    assert _error(client, "denied")[0] == 403
    assert _error(client, "forbidden")[0] == 403
    assert _error(client, "invalid")[0] == 400
    assert _error(client, "upstream")[0] == 503


def test_client_error_envelope_carries_code_details_and_trace() -> None:
    status, err = _error(TestClient(_app()), "denied")

    assert status == 403
    assert err["code"] == "SCOPE_DENIED"
    assert err["message"] == "access denied"
    assert err["details"] == {"reason": "unknown_role"}
    assert err["trace_id"] == "trace-xyz"


def test_server_side_domain_errors_hide_details() -> None:
    client = TestClient(_app())

    status, err = _error(client, "upstream")
    assert err["code"] == "UPSTREAM_UNAVAILABLE"
    assert "details" not in err

    status, err = _error(client, "unmapped")
    assert status == 500
    assert err["code"] == "INTERNAL_ERROR"


def test_http_exception_keeps_headers() -> None:
    resp = TestClient(_app()).get("/raise/auth")

    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


def test_unknown_route_uses_envelope() -> None:
    resp = TestClient(_app()).get("/nope")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


def test_validation_error_envelope() -> None:
    resp = TestClient(_app()).post("/validation", json={"value": "not-an-int"})

    assert resp.status_code == 422
    err = resp.json()["error"]
    assert err["code"] == "VALIDATION_ERROR"
    assert "errors" in err["details"]


def test_unhandled_exception_is_internal_error() -> None:
    client = TestClient(_app(), raise_server_exceptions=False)

    status, err = _error(client, "boom")

    assert status == 500
    assert err["code"] == "INTERNAL_ERROR"
    assert err["message"] == "Internal server error"
