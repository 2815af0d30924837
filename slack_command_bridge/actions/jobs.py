"""Job adapters: the opaque units of work behind submit actions."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

from slack_command_bridge.errors import JobInvocationError

RUNNING_STATUS = "RUNNING"
SUCCEEDED_STATUS = "SUCCEEDED"


@dataclass(frozen=True)
class ExecutionStatus:
    """Snapshot of a workflow execution as reported by its engine."""

    status: str
    output: str | None = None
    error: str | None = None
    cause: str | None = None

    @property
    def is_running(self) -> bool:
        return self.status == RUNNING_STATUS

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED_STATUS

    def failure_detail(self) -> str:
        return self.cause or self.error or self.output or f"Execution finished with status {self.status}"


class DirectJob(ABC):
    """A synchronous job returning its raw output or raising on failure."""

    kind = "direct"

    @abstractmethod
    def invoke(self, payload: Mapping[str, Any]) -> str:
        """Run the job with *payload* and return its raw output."""


class WorkflowJob(ABC):
    """A long-running job that is started and then observed until it ends."""

    kind = "workflow"

    @abstractmethod
    def start(self, payload: Mapping[str, Any]) -> str:
        """Start an execution and return its identifier."""

    @abstractmethod
    def describe(self, execution_id: str) -> ExecutionStatus:
        """Return the current status of *execution_id*."""


class LambdaJob(DirectJob):
    """Invoke an AWS Lambda function synchronously."""

    def __init__(self, *, function_name: str, client: Any) -> None:
        self.function_name = function_name
        self._client = client

    def invoke(self, payload: Mapping[str, Any]) -> str:
        response = self._client.invoke(
            FunctionName=self.function_name,
            InvocationType="RequestResponse",
            Payload=json.dumps(dict(payload)).encode("utf-8"),
        )
        raw = response["Payload"].read()
        body = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)

        if response.get("FunctionError"):
            raise JobInvocationError(_lambda_error_message(body, response["FunctionError"]))
        return body


def _lambda_error_message(body: str, function_error: str) -> str:
    try:
        details = json.loads(body)
    except json.JSONDecodeError:
        return body or function_error
    if isinstance(details, dict) and details.get("errorMessage"):
        return str(details["errorMessage"])
    return body or function_error


class StepFunctionsJob(WorkflowJob):
    """Start and observe an AWS Step Functions state machine execution."""

    def __init__(self, *, state_machine_arn: str, client: Any) -> None:
        self.state_machine_arn = state_machine_arn
        self._client = client

    def start(self, payload: Mapping[str, Any]) -> str:
        response = self._client.start_execution(
            stateMachineArn=self.state_machine_arn,
            input=json.dumps(dict(payload)),
        )
        return response["executionArn"]

    def describe(self, execution_id: str) -> ExecutionStatus:
        response = self._client.describe_execution(executionArn=execution_id)
        return ExecutionStatus(
            status=response["status"],
            output=response.get("output"),
            error=response.get("error"),
            cause=response.get("cause"),
        )
