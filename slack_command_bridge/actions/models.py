"""Pydantic models describing the actions the bot can run."""

from __future__ import annotations

import re
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

_ALLOWED_KINDS = {"lambda", "step_function"}
_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")
RESERVED_NAMES = {"welcome"}


class ActionDefinition(BaseModel):
    """One button on the welcome menu and the job behind it."""

    name: str = Field(..., description="Action base, e.g. 'sample-lambda'")
    title: str
    description: str = "Here's a description about what kind of input this form expects."
    kind: str = Field(..., description="Job kind: lambda or step_function")
    target: str = Field(..., description="Lambda function name or state machine ARN")
    extra_input: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not _NAME_PATTERN.match(value):
            raise ValueError("action names must be lowercase and may only contain letters, digits, '-' and '_'")
        if value in RESERVED_NAMES:
            raise ValueError(f"'{value}' is a reserved action name")
        return value

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, value: str) -> str:
        if value not in _ALLOWED_KINDS:
            raise ValueError(f"Unsupported action kind '{value}'")
        return value

    @field_validator("title", "target")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("extra_input")
    @classmethod
    def validate_extra_input(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        if "input" in value:
            raise ValueError("extra_input may not override the 'input' key")
        return value

    @property
    def submit_action(self) -> str:
        return f"{self.name}/submit"
