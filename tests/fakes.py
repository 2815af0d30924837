"""Shared test doubles."""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping

from slack_command_bridge.actions import DirectJob


class CallableJob(DirectJob):
    """Run an in-process function as a direct job."""

    def __init__(self, func: Callable[[Mapping[str, Any]], Any]) -> None:
        self._func = func

    def invoke(self, payload: Mapping[str, Any]) -> str:
        result = self._func(payload)
        if isinstance(result, str):
            return result
        return json.dumps(result)
