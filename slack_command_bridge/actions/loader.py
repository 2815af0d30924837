"""Loaders for action definitions."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Dict

from pydantic import ValidationError

from slack_command_bridge.errors import ActionDefinitionError

from .models import ActionDefinition


@lru_cache()
def load_action_definition(file_path: Path) -> ActionDefinition:
    """Load an action definition from a JSON file."""

    try:
        with file_path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
        return ActionDefinition.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise ActionDefinitionError(f"Invalid action definition {file_path.name}: {exc}") from exc


def load_action_definitions(directory: Path) -> Dict[str, ActionDefinition]:
    """Load every JSON action definition inside *directory* keyed by name."""

    definitions: Dict[str, ActionDefinition] = {}
    if not directory.is_dir():
        return definitions

    for file_path in sorted(directory.glob("*.json")):
        definition = load_action_definition(file_path)
        if definition.name in definitions:
            raise ActionDefinitionError(f"Duplicate action name '{definition.name}' in {file_path.name}")
        definitions[definition.name] = definition
    return definitions
