import os
import sys
from typing import Any

import pytest

# Ensure repository root is on sys.path so `import ai_gateway` works when running pytest.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


class FakeModelClient:
    """Stands in for ModelClient: records inputs and replays a canned reply."""

    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def respond(self, input_items: list[dict[str, Any]], *, json_mode: bool = False) -> str:
        self.calls.append({"input": input_items, "json_mode": json_mode})
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    """Keep tests offline and independent of a developer's .env and of each other."""

    from ai_gateway.core import flags
    from ai_gateway.core.settings import settings as app_settings

    monkeypatch.setattr(app_settings, "APP_ENV", "test", raising=False)
    monkeypatch.setattr(app_settings, "OPENAI_API_KEY", None, raising=False)
    monkeypatch.setattr(app_settings, "REQUIRE_API_KEY", False, raising=False)
    monkeypatch.setattr(app_settings, "RATE_LIMIT_ENABLED", False, raising=False)
    monkeypatch.setattr(app_settings, "HARMONIC_V2_ENABLED", False, raising=False)
    monkeypatch.setattr(app_settings, "HARMONIC_MALFORMED_POLICY", "strict_error", raising=False)
    monkeypatch.setattr(app_settings, "HARMONIC_V2_MALFORMED_POLICY", "soft_warning", raising=False)
    flags.reset_overrides()
    yield
    flags.reset_overrides()


@pytest.fixture
def make_client():
    """Build a TestClient whose model calls go to a FakeModelClient."""

    from fastapi.testclient import TestClient

    from ai_gateway.integrations.openai_responses import get_model_client
    from ai_gateway.main import create_app

    def _make(reply: str = "", error: Exception | None = None):
        fake = FakeModelClient(reply=reply, error=error)
        app = create_app()
        app.dependency_overrides[get_model_client] = lambda: fake
        return TestClient(app), fake

    return _make


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def chart_file():
    return {"image": ("chart.png", PNG_BYTES, "image/png")}
