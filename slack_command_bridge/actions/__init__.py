"""Action definitions, loaders, jobs and the registry tying them together."""

from .jobs import (
    DirectJob,
    ExecutionStatus,
    LambdaJob,
    StepFunctionsJob,
    WorkflowJob,
)
from .loader import load_action_definition, load_action_definitions
from .models import ActionDefinition
from .registry import ActionRegistry, RegisteredAction, build_job, build_registry

__all__ = [
    "ActionDefinition",
    "ActionRegistry",
    "RegisteredAction",
    "DirectJob",
    "ExecutionStatus",
    "LambdaJob",
    "StepFunctionsJob",
    "WorkflowJob",
    "build_job",
    "build_registry",
    "load_action_definition",
    "load_action_definitions",
]
