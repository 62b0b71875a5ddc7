"""Smoke test for the gateway's public API contract.

Runs a minimal set of offline requests against the FastAPI app using TestClient
(no model calls are made) and asserts the response shapes web clients expect.

Usage:
  python scripts/smoke_gateway_contract.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient


def _assert_keys(obj: Any, keys: list[str], *, where: str) -> None:
    if not isinstance(obj, dict):
        raise AssertionError(f"{where}: expected dict, got {type(obj)}")
    missing = [k for k in keys if k not in obj]
    if missing:
        raise AssertionError(f"{where}: missing keys: {missing}")


def main() -> None:
    # Ensure repo root is on sys.path so `import ai_gateway` works when running as a script.
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    # Keep it deterministic/offline.
    os.environ.setdefault("APP_ENV", "test")
    os.environ["REQUIRE_API_KEY"] = "false"
    os.environ["HARMONIC_V2_ENABLED"] = "false"

    from ai_gateway.main import create_app

    client = TestClient(create_app())

    r = client.get("/")
    assert r.status_code == 200 and r.text.strip(), "/"

    r = client.get("/health")
    assert r.status_code == 200
    _assert_keys(r.json(), ["status", "env", "model", "features"], where="/health")

    # Validation errors use the {"error": ...} envelope.
    r = client.post("/api/analisis-ia", data={"message": ""})
    assert r.status_code == 400
    _assert_keys(r.json(), ["error"], where="/api/analisis-ia (no message)")

    r = client.post("/api/harmonic-patterns", data={"message": "no chart"})
    assert r.status_code == 400
    _assert_keys(r.json(), ["error"], where="/api/harmonic-patterns (no image)")

    # v2 is off by default and must refuse before touching the model.
    r = client.post("/api/v2/harmonic-patterns")
    assert r.status_code == 503
    _assert_keys(r.json(), ["error"], where="/api/v2/harmonic-patterns (disabled)")

    r = client.get("/api/controls/status")
    assert r.status_code == 200
    _assert_keys(r.json(), ["ok", "features"], where="/api/controls/status")

    print("OK: gateway contract smoke passed")


if __name__ == "__main__":
    main()
