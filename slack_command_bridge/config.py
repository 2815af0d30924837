"""Pydantic-based configuration helpers for the Slack command bridge."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Iterable, List

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


class AppSettings(BaseModel):
    """Settings required to verify, authorize and dispatch Slack commands."""

    bot_token: str | None = Field(None, alias="SLACK_BOT_TOKEN")
    signing_secret: str | None = Field(None, alias="SLACK_SIGNING_SECRET")
    slack_secrets_name: str | None = Field(None, alias="SLACK_SECRETS_NAME")
    permitted_channel_id: str = Field(..., alias="SLACK_CHANNEL_ID")
    database_url: str = Field(..., alias="DATABASE_URL")
    action_definition_dir: str = Field("actions", alias="ACTION_DEFINITION_DIR")
    aws_region: str = Field("us-east-1", alias="AWS_REGION")
    request_tolerance_seconds: int = Field(300, alias="REQUEST_TOLERANCE_SECONDS")
    workflow_poll_interval_ms: int = Field(500, alias="WORKFLOW_POLL_INTERVAL_MS")
    workflow_timeout_seconds: int = Field(900, alias="WORKFLOW_TIMEOUT_SECONDS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("bot_token", "signing_secret", "slack_secrets_name", mode="before")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("permitted_channel_id")
    @classmethod
    def _strip_channel(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("SLACK_CHANNEL_ID must not be empty")
        return value

    @field_validator(
        "request_tolerance_seconds",
        "workflow_poll_interval_ms",
        "workflow_timeout_seconds",
    )
    @classmethod
    def _ensure_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Timing settings must be greater than zero")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @model_validator(mode="after")
    def _require_credentials_source(self):
        if self.slack_secrets_name:
            return self
        if not self.bot_token or not self.signing_secret:
            raise ValueError(
                "SLACK_BOT_TOKEN and SLACK_SIGNING_SECRET are required unless SLACK_SECRETS_NAME is set"
            )
        return self

    @property
    def workflow_poll_interval(self) -> float:
        """Poll interval in seconds."""

        return self.workflow_poll_interval_ms / 1000


def _format_missing(fields: Iterable[str]) -> str:
    """Return a human-friendly comma-separated list of missing env vars."""

    unique: List[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables."""

    try:
        return AppSettings.model_validate(os.environ)
    except ValidationError as exc:
        errors = exc.errors()
        missing = [str(error["loc"][0]) for error in errors if error["type"] == "missing" and error["loc"]]
        if missing:
            message = (
                "Missing required environment variables: "
                f"{_format_missing(missing)}"
            )
        else:
            message = "Invalid configuration: " + "; ".join(error["msg"] for error in errors)
        raise RuntimeError(message) from exc
