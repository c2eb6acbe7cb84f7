# tests/unit/adapters/routers/test_context_router.py
from __future__ import annotations


def test_staff_context_drives_later_scope(harness) -> None:
    harness.act_as(1)

    put = harness.client.put("/v1/safety/context", json={"employer_id": 1})
    scope = harness.client.get("/v1/safety/scope")
    current = harness.client.get("/v1/safety/context")

    assert put.status_code == 200
    assert put.json() == {"data": {"employer_id": 1}}
    assert scope.json()["data"] == {"kind": "employer", "employer_id": 1}
    assert current.json()["data"]["employer_id"] == 1


def test_explicit_filter_beats_context(harness) -> None:
    harness.act_as(1)
    harness.client.put("/v1/safety/context", json={"employer_id": 1})

    scope = harness.client.get("/v1/safety/scope", params={"employer_id": 8})

    assert scope.json()["data"]["employer_id"] == 8


def test_clear_context(harness) -> None:
    harness.act_as(3)
    harness.client.put("/v1/safety/context", json={"employer_id": 1})

    resp = harness.client.delete("/v1/safety/context")

    assert resp.status_code == 204
    assert harness.client.get("/v1/safety/context").json()["data"]["employer_id"] is None


def test_tenant_cannot_set_context(harness) -> None:
    resp = harness.client.put("/v1/safety/context", json={"employer_id": 1})

    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "CONTEXT_FORBIDDEN"
    assert harness.context.values == {}


def test_invalid_context_employer(harness) -> None:
    harness.act_as(1)

    resp = harness.client.put("/v1/safety/context", json={"employer_id": -4})

    assert resp.status_code == 400


def test_sign_out_drops_context_for_every_role(harness) -> None:
    harness.act_as(1)
    harness.client.put("/v1/safety/context", json={"employer_id": 1})

    resp = harness.client.post("/v1/safety/session/sign-out")

    assert resp.status_code == 204
    assert harness.context.values == {}

    harness.act_as(7, 8)
    assert harness.client.post("/v1/safety/session/sign-out").status_code == 204
