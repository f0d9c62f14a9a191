import json

from fastapi.testclient import TestClient

from missiondir.store import MemoryMissionStore
from tests._harness import BEARER

GET = "query GetMission($id: ID!) { GetMission(id: $id) { id } }"


def test_oversized_body_is_blocked(build_app):
    app = build_app(auth_enabled=True, store=MemoryMissionStore(), MD_FILTER_MAX_BODY_BYTES="128")
    client = TestClient(app)
    r = client.post(
        "/admin/graphql",
        json={"query": GET, "variables": {"id": "x" * 500}},
        headers=BEARER,
    )
    assert r.status_code == 413
    assert r.headers.get("x-md-filter") == "blocked"


def test_denied_ip_is_blocked_before_auth(build_app):
    app = build_app(auth_enabled=True, store=MemoryMissionStore(), MD_FILTER_DENY_IPS="203.0.113.9")
    client = TestClient(app)
    r = client.post(
        "/personnel/graphql",
        json={"query": GET, "variables": {"id": "abc"}},
        headers={"x-forwarded-for": "203.0.113.9, 10.0.0.1"},
    )
    assert r.status_code == 403
    assert r.json()["filter"] == "blocked"


def test_normal_traffic_passes_and_is_stamped(build_app):
    client = TestClient(build_app(auth_enabled=True, store=MemoryMissionStore()))
    r = client.post("/admin/graphql", json={"query": GET, "variables": {"id": "abc"}}, headers=BEARER)
    assert r.status_code == 200
    assert r.headers.get("x-md-filter") == "passed"


def test_health_is_never_filtered(build_app):
    app = build_app(auth_enabled=True, store=MemoryMissionStore(), MD_FILTER_DENY_IPS="testclient")
    client = TestClient(app)
    assert client.get("/health").status_code == 200


def test_filter_can_be_disabled(build_app):
    app = build_app(
        auth_enabled=True,
        store=MemoryMissionStore(),
        MD_FILTER_ENABLED="0",
        MD_FILTER_MAX_BODY_BYTES="16",
    )
    client = TestClient(app)
    r = client.post("/admin/graphql", json={"query": GET, "variables": {"id": "abc"}}, headers=BEARER)
    assert r.status_code == 200


def _chunks(total: int, size: int = 512):
    sent = 0
    while sent < total:
        n = min(size, total - sent)
        yield b" " * n
        sent += n


def test_chunked_body_without_length_is_blocked(build_app):
    app = build_app(auth_enabled=True, store=MemoryMissionStore(), MD_FILTER_MAX_BODY_BYTES="128")
    client = TestClient(app)
    r = client.post(
        "/admin/graphql",
        content=_chunks(5 * 1024),
        headers={**BEARER, "content-type": "application/json"},
    )
    assert "content-length" not in r.request.headers
    assert r.status_code == 413
    assert r.headers.get("x-md-filter") == "blocked"


def test_small_chunked_body_reaches_the_app(build_app):
    app = build_app(auth_enabled=True, store=MemoryMissionStore(), MD_FILTER_MAX_BODY_BYTES="4096")
    client = TestClient(app)
    payload = json.dumps({"query": GET, "variables": {"id": "abc"}}).encode()

    def body():
        yield payload[:20]
        yield payload[20:]

    r = client.post("/admin/graphql", content=body(), headers={**BEARER, "content-type": "application/json"})
    assert r.status_code == 200
    assert r.json() == {"data": {"GetMission": None}}
    assert r.headers.get("x-md-filter") == "passed"
