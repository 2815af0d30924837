"""Tests for Slack credential resolution."""

import json
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from slack_command_bridge.config import AppSettings  # noqa: E402
from slack_command_bridge.credentials import load_credentials  # noqa: E402


class FakeSecretsClient:
    def __init__(self, secret_string):
        self.secret_string = secret_string
        self.requested = []

    def get_secret_value(self, **kwargs):
        self.requested.append(kwargs)
        return {"SecretString": self.secret_string}


def _settings(**overrides):
    values = {
        "SLACK_CHANNEL_ID": "C123",
        "DATABASE_URL": "sqlite://",
        "SLACK_BOT_TOKEN": "xoxb-inline",
        "SLACK_SIGNING_SECRET": "inline-secret",
    }
    values.update(overrides)
    return AppSettings.model_validate(values)


def test_credentials_come_from_settings_without_secrets_name():
    credentials = load_credentials(_settings())

    assert credentials.bot_token == "xoxb-inline"
    assert credentials.signing_secret == "inline-secret"


def test_credentials_read_from_secrets_manager():
    client = FakeSecretsClient(json.dumps({"signingSecret": "sm-secret", "botToken": "xoxb-sm"}))
    settings = _settings(SLACK_SECRETS_NAME="prod/slack", SLACK_BOT_TOKEN="", SLACK_SIGNING_SECRET="")

    credentials = load_credentials(settings, secrets_client=lambda: client)

    assert client.requested == [{"SecretId": "prod/slack"}]
    assert credentials.signing_secret == "sm-secret"
    assert credentials.bot_token == "xoxb-sm"


def test_secret_missing_keys_raises_runtime_error():
    client = FakeSecretsClient(json.dumps({"botToken": "xoxb-sm"}))
    settings = _settings(SLACK_SECRETS_NAME="prod/slack")

    with pytest.raises(RuntimeError) as err:
        load_credentials(settings, secrets_client=lambda: client)

    assert "prod/slack" in str(err.value)


def test_secret_that_is_not_json_raises_runtime_error():
    client = FakeSecretsClient("not json")
    settings = _settings(SLACK_SECRETS_NAME="prod/slack")

    with pytest.raises(RuntimeError):
        load_credentials(settings, secrets_client=lambda: client)
