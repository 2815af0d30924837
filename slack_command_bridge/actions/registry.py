"""Registry of the actions the router can dispatch to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator

from slack_command_bridge.errors import ActionDefinitionError, UnknownActionError

from .jobs import DirectJob, LambdaJob, StepFunctionsJob, WorkflowJob
from .models import ActionDefinition

Job = DirectJob | WorkflowJob


@dataclass(frozen=True)
class RegisteredAction:
    definition: ActionDefinition
    job: Job

    @property
    def name(self) -> str:
        return self.definition.name


class ActionRegistry:
    """Map action bases to their definition and job, in menu order."""

    def __init__(self, actions: Iterable[RegisteredAction] = ()) -> None:
        self._actions: Dict[str, RegisteredAction] = {}
        for action in actions:
            self.register(action.definition, action.job)

    def register(self, definition: ActionDefinition, job: Job) -> RegisteredAction:
        if definition.name in self._actions:
            raise ActionDefinitionError(f"Action '{definition.name}' is already registered")
        registered = RegisteredAction(definition=definition, job=job)
        self._actions[definition.name] = registered
        return registered

    def get(self, name: str) -> RegisteredAction | None:
        return self._actions.get(name)

    def require(self, name: str) -> RegisteredAction:
        registered = self._actions.get(name)
        if registered is None:
            raise UnknownActionError(f"No handler is registered for action '{name}'")
        return registered

    def __contains__(self, name: object) -> bool:
        return name in self._actions

    def __iter__(self) -> Iterator[RegisteredAction]:
        return iter(list(self._actions.values()))

    def __len__(self) -> int:
        return len(self._actions)


def build_job(
    definition: ActionDefinition,
    *,
    lambda_client: Callable[[], Any],
    stepfunctions_client: Callable[[], Any],
) -> Job:
    """Create the AWS-backed job for *definition*."""

    if definition.kind == "lambda":
        return LambdaJob(function_name=definition.target, client=lambda_client())
    if definition.kind == "step_function":
        return StepFunctionsJob(state_machine_arn=definition.target, client=stepfunctions_client())
    raise ActionDefinitionError(f"Unsupported action kind '{definition.kind}'")


def build_registry(
    definitions: Dict[str, ActionDefinition],
    *,
    lambda_client: Callable[[], Any],
    stepfunctions_client: Callable[[], Any],
) -> ActionRegistry:
    """Build a registry holding one AWS-backed job per definition."""

    registry = ActionRegistry()
    for definition in definitions.values():
        job = build_job(
            definition,
            lambda_client=lambda_client,
            stepfunctions_client=stepfunctions_client,
        )
        registry.register(definition, job)
    return registry
