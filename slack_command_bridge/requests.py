"""Utilities for normalising inbound Slack requests into commands."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping
from urllib.parse import parse_qs

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from slack_command_bridge.errors import MalformedPayloadError
from slack_command_bridge.security import SLACK_SIGNATURE_HEADER, SLACK_TIMESTAMP_HEADER

WELCOME_ACTION = "welcome"
ACTION_SEPARATOR = "/"
FORM_INPUT_BLOCK_ID = "form_input"
FORM_INPUT_ACTION_ID = "input_value"


@dataclass(frozen=True)
class InboundRequest:
    """Raw headers and body of one Slack callback."""

    timestamp: str | None
    signature: str | None
    content_type: str
    body: bytes

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], body: bytes) -> "InboundRequest":
        return cls(
            timestamp=headers.get(SLACK_TIMESTAMP_HEADER),
            signature=headers.get(SLACK_SIGNATURE_HEADER),
            content_type=headers.get("Content-Type", "") or "",
            body=body,
        )


@dataclass(frozen=True)
class NormalizedCommand:
    """Consistent view over slash commands and interactive actions."""

    channel_id: str
    user_name: str
    action: str
    response_target: str
    action_base: str | None = None
    input_value: str | None = None


def action_base_of(action: str) -> str:
    """Return the prefix of *action* up to the first separator."""

    return action.split(ACTION_SEPARATOR, 1)[0]


class _Channel(BaseModel):
    id: str


class _User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: str = Field(..., min_length=1)


class _Action(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action_id: str = Field(..., min_length=1)


class _InputValue(BaseModel):
    value: str | None = None


class _State(BaseModel):
    values: Dict[str, Dict[str, _InputValue]] = Field(default_factory=dict)


class InteractivePayload(BaseModel):
    """Block action payload posted when a user clicks a button."""

    model_config = ConfigDict(extra="ignore")

    channel: _Channel
    user: _User
    actions: List[_Action] = Field(..., min_length=1)
    response_url: str
    state: _State | None = None

    def input_value(self) -> str | None:
        if self.state is None:
            return None
        block = self.state.values.get(FORM_INPUT_BLOCK_ID, {})
        entry = block.get(FORM_INPUT_ACTION_ID)
        return entry.value if entry is not None else None


class SlashCommandPayload(BaseModel):
    """Form fields posted when a user runs the slash command."""

    model_config = ConfigDict(extra="ignore")

    user_id: str
    user_name: str = Field(..., min_length=1)
    channel_id: str
    response_url: str


def _decode_form(body: bytes) -> Dict[str, str]:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedPayloadError("Request body is not valid UTF-8.") from exc
    parsed = parse_qs(text, keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items() if values}


def _load_json(raw: str | bytes) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedPayloadError("Interactive payload is not valid JSON.") from exc


def _from_interactive(data: Any) -> NormalizedCommand:
    try:
        payload = InteractivePayload.model_validate(data)
    except ValidationError as exc:
        raise MalformedPayloadError("Interactive payload is missing required fields.") from exc

    action = payload.actions[0].action_id
    return NormalizedCommand(
        channel_id=payload.channel.id,
        user_name=payload.user.username,
        action=action,
        action_base=action_base_of(action),
        response_target=payload.response_url,
        input_value=payload.input_value(),
    )


def _from_slash_command(fields: Mapping[str, str]) -> NormalizedCommand:
    try:
        payload = SlashCommandPayload.model_validate(dict(fields))
    except ValidationError as exc:
        raise MalformedPayloadError("Slash command payload is missing required fields.") from exc

    return NormalizedCommand(
        channel_id=payload.channel_id,
        user_name=payload.user_name,
        action=WELCOME_ACTION,
        action_base=WELCOME_ACTION,
        response_target=payload.response_url,
    )


def parse_command(inbound: InboundRequest) -> NormalizedCommand:
    """Normalise *inbound* into a :class:`NormalizedCommand`.

    Accepts URL-encoded slash command fields, a URL-encoded ``payload`` field
    holding interactive JSON, or a JSON body carrying the interactive payload.
    """

    media_type = inbound.content_type.split(";", 1)[0].strip().lower()

    if media_type == "application/json":
        return _from_interactive(_load_json(inbound.body))

    fields = _decode_form(inbound.body)
    if "payload" in fields:
        return _from_interactive(_load_json(fields["payload"]))
    if "user_id" in fields:
        return _from_slash_command(fields)

    raise MalformedPayloadError("Request body is neither a slash command nor an interactive payload.")
