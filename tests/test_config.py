"""Tests for configuration helpers."""

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from slack_command_bridge import config  # noqa: E402

OPTIONAL_VARS = (
    "SLACK_SECRETS_NAME",
    "ACTION_DEFINITION_DIR",
    "AWS_REGION",
    "REQUEST_TOLERANCE_SECONDS",
    "WORKFLOW_POLL_INTERVAL_MS",
    "WORKFLOW_TIMEOUT_SECONDS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def _seed_env(monkeypatch):
    for var in OPTIONAL_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("SLACK_BOT_TOKEN", "token")
    monkeypatch.setenv("SLACK_SIGNING_SECRET", "secret")
    monkeypatch.setenv("SLACK_CHANNEL_ID", " C123 ")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///local.db")


def test_get_settings_parses_expected_fields(monkeypatch):
    _seed_env(monkeypatch)

    settings = config.get_settings()

    assert settings.bot_token == "token"
    assert settings.signing_secret == "secret"
    assert settings.permitted_channel_id == "C123"
    assert settings.database_url == "sqlite:///local.db"


def test_defaults_apply_when_optional_settings_absent(monkeypatch):
    _seed_env(monkeypatch)

    settings = config.get_settings()

    assert settings.slack_secrets_name is None
    assert settings.action_definition_dir == "actions"
    assert settings.aws_region == "us-east-1"
    assert settings.request_tolerance_seconds == 300
    assert settings.workflow_timeout_seconds == 900
    assert settings.workflow_poll_interval == pytest.approx(0.5)
    assert settings.log_level == "INFO"


def test_optional_settings_are_read(monkeypatch):
    _seed_env(monkeypatch)
    monkeypatch.setenv("WORKFLOW_POLL_INTERVAL_MS", "250")
    monkeypatch.setenv("WORKFLOW_TIMEOUT_SECONDS", "60")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = config.get_settings()

    assert settings.workflow_poll_interval == pytest.approx(0.25)
    assert settings.workflow_timeout_seconds == 60
    assert settings.log_level == "DEBUG"


def test_get_settings_is_cached(monkeypatch):
    _seed_env(monkeypatch)

    assert config.get_settings() is config.get_settings()


def test_missing_environment_variables_raise_runtime_error(monkeypatch):
    _seed_env(monkeypatch)
    monkeypatch.delenv("SLACK_CHANNEL_ID")
    monkeypatch.delenv("DATABASE_URL")

    with pytest.raises(RuntimeError) as err:
        config.get_settings()

    message = str(err.value)
    assert message.startswith("Missing required environment variables")
    assert "SLACK_CHANNEL_ID" in message
    assert "DATABASE_URL" in message


def test_slack_credentials_required_without_secrets_name(monkeypatch):
    _seed_env(monkeypatch)
    monkeypatch.setenv("SLACK_SIGNING_SECRET", "  ")

    with pytest.raises(RuntimeError) as err:
        config.get_settings()

    assert "SLACK_SIGNING_SECRET" in str(err.value)


def test_secrets_name_replaces_inline_credentials(monkeypatch):
    _seed_env(monkeypatch)
    monkeypatch.delenv("SLACK_BOT_TOKEN")
    monkeypatch.delenv("SLACK_SIGNING_SECRET")
    monkeypatch.setenv("SLACK_SECRETS_NAME", "prod/slack")

    settings = config.get_settings()

    assert settings.slack_secrets_name == "prod/slack"
    assert settings.bot_token is None


@pytest.mark.parametrize("var", ["REQUEST_TOLERANCE_SECONDS", "WORKFLOW_POLL_INTERVAL_MS", "WORKFLOW_TIMEOUT_SECONDS"])
def test_non_positive_timings_are_invalid(monkeypatch, var):
    _seed_env(monkeypatch)
    monkeypatch.setenv(var, "0")

    with pytest.raises(RuntimeError) as err:
        config.get_settings()

    assert str(err.value).startswith("Invalid configuration")
