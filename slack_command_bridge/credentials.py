"""Resolve the Slack signing secret and bot token."""

from __future__ import annotations

from typing import Any, Callable

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from slack_command_bridge.aws_clients import build_secretsmanager_client
from slack_command_bridge.config import AppSettings


class SlackCredentials(BaseModel):
    """Secrets needed to verify requests and call the Slack Web API."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    signing_secret: str = Field(..., alias="signingSecret", min_length=1)
    bot_token: str = Field(..., alias="botToken", min_length=1)


def load_credentials(
    settings: AppSettings,
    *,
    secrets_client: Callable[[], Any] | None = None,
) -> SlackCredentials:
    """Return credentials from Secrets Manager when configured, else from settings.

    The secret is expected to be a JSON document with ``signingSecret`` and
    ``botToken`` keys.
    """

    if not settings.slack_secrets_name:
        return SlackCredentials(signing_secret=settings.signing_secret, bot_token=settings.bot_token)

    client = secrets_client() if secrets_client else build_secretsmanager_client(settings.aws_region)
    response = client.get_secret_value(SecretId=settings.slack_secrets_name)
    try:
        credentials = SlackCredentials.model_validate_json(response["SecretString"])
    except (KeyError, ValidationError) as exc:
        raise RuntimeError(
            f"Secret '{settings.slack_secrets_name}' must contain signingSecret and botToken"
        ) from exc

    structlog.get_logger().info("slack_credentials_loaded", source="secretsmanager", secret=settings.slack_secrets_name)
    return credentials
