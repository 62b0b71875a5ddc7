from fastapi.testclient import TestClient

from ai_gateway.main import create_app


def test_root_ok():
    client = TestClient(create_app())
    r = client.get("/")
    assert r.status_code == 200
    assert r.text == "DR.TRADER IA backend OK"


def test_health_ok():
    client = TestClient(create_app())
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["env"] == "test"
    assert body["model_configured"] is False
    assert body["features"] == {"harmonic_v2": False}


def test_request_id_is_echoed_or_generated():
    client = TestClient(create_app())

    r1 = client.get("/health", headers={"x-request-id": "abc-123"})
    assert r1.headers["x-request-id"] == "abc-123"

    r2 = client.get("/health")
    assert r2.headers.get("x-request-id")


def test_cors_preflight_allowed():
    client = TestClient(create_app())
    r = client.options(
        "/api/analisis-ia",
        headers={"Origin": "https://example.org", "Access-Control-Request-Method": "POST"},
    )
    assert r.status_code == 200
    assert r.headers.get("access-control-allow-origin") in ("*", "https://example.org")
