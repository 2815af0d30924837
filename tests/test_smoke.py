"""Smoke tests for the health endpoint."""

from contextlib import contextmanager
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover - import-time guard
    sys.path.insert(0, str(ROOT))

import app as app_module  # noqa: E402  (import after path adjustment)
from slack_command_bridge import config  # noqa: E402
from slack_command_bridge.db import get_engine, get_session_factory  # noqa: E402
from slack_command_bridge.runtime import AppRuntime  # noqa: E402


@pytest.fixture(autouse=True)
def seed_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SLACK_BOT_TOKEN", "test-token")
    monkeypatch.setenv("SLACK_SIGNING_SECRET", "test-secret")
    monkeypatch.setenv("SLACK_CHANNEL_ID", "C123")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("ACTION_DEFINITION_DIR", str(ROOT / "actions"))
    monkeypatch.delenv("SLACK_SECRETS_NAME", raising=False)
    config.get_settings.cache_clear()
    get_engine.cache_clear()
    get_session_factory.cache_clear()
    yield
    config.get_settings.cache_clear()
    get_engine.cache_clear()
    get_session_factory.cache_clear()


def test_health_endpoint_returns_ok():
    flask_app = app_module.create_app(AppRuntime())

    with flask_app.test_client() as client:
        response = client.get("/healthz")
        assert response.status_code == 200
        data = response.get_json()
        assert data["ok"] is True
        assert data["config"] == "valid"
        assert data["db"] == "up"
        assert data["actions"] == ["sample-lambda", "sample-sfn"]
        assert "version" in data


def test_health_endpoint_reports_db_down(monkeypatch):
    flask_app = app_module.create_app(AppRuntime())

    @contextmanager
    def failing_session_scope():
        raise RuntimeError("db down")
        yield

    monkeypatch.setattr(app_module, "session_scope", failing_session_scope)

    with flask_app.test_client() as client:
        response = client.get("/healthz")
        data = response.get_json()
        assert response.status_code == 503
        assert data["ok"] is False
        assert data["db"] == "down"
        assert "db_error" in data


def test_health_endpoint_reports_invalid_actions(monkeypatch, tmp_path):
    actions_dir = tmp_path / "actions"
    actions_dir.mkdir()
    (actions_dir / "broken.json").write_text("{", encoding="utf-8")
    monkeypatch.setenv("ACTION_DEFINITION_DIR", str(actions_dir))
    config.get_settings.cache_clear()

    flask_app = app_module.create_app(AppRuntime())

    with flask_app.test_client() as client:
        response = client.get("/healthz")
        data = response.get_json()
        assert response.status_code == 503
        assert data["actions"] == "invalid"
        assert "broken.json" in data["actions_error"]
