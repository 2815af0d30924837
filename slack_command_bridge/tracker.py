"""Run submitted jobs and mirror their progress in one Slack status message."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping

import structlog
from slack_sdk.errors import SlackApiError

from slack_command_bridge.actions import DirectJob, RegisteredAction, WorkflowJob
from slack_command_bridge.errors import (
    ResponseDeliveryError,
    RunTransitionError,
    StatusUpdateError,
    WorkflowExecutionFailed,
    WorkflowTimeoutError,
)
from slack_command_bridge.messages import (
    DISMISS_MESSAGE,
    SECTION_TEXT_LIMIT,
    RunPhase,
    build_header_blocks,
    build_status_message,
)
from slack_command_bridge.requests import NormalizedCommand
from slack_command_bridge.slack_client import ResponseUrlClient, SlackClient

DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_WORKFLOW_TIMEOUT = 900.0

_ALLOWED_TRANSITIONS = {
    RunPhase.RUNNING: {RunPhase.SUCCEEDED, RunPhase.FAILED},
    RunPhase.SUCCEEDED: set(),
    RunPhase.FAILED: set(),
}


@dataclass(frozen=True)
class MessageRef:
    """Channel and timestamp identifying a posted Slack message."""

    channel: str
    ts: str


@dataclass
class RunRecord:
    """One in-flight job execution and the status message it owns."""

    action: str
    channel_id: str
    message_ref: MessageRef
    input_value: str | None
    header_blocks: List[Dict[str, Any]] = field(default_factory=list)
    phase: RunPhase = RunPhase.RUNNING
    detail: str | None = None

    def finish(self, phase: RunPhase, detail: str) -> None:
        allowed = _ALLOWED_TRANSITIONS.get(self.phase, set())
        if phase not in allowed:
            raise RunTransitionError(f"Cannot transition run from {self.phase.value} to {phase.value}")
        self.phase = phase
        self.detail = detail


@dataclass(frozen=True)
class DispatchEvent:
    """What the job boundary receives for a submitted action."""

    action: str
    channel_id: str
    message_ref: MessageRef
    header_blocks: List[Dict[str, Any]]
    input_value: str | None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "channelId": self.channel_id,
            "messageTs": self.message_ref.ts,
            "headerBlocks": self.header_blocks,
            "inputValue": self.input_value,
        }

    def job_input(self, extra_input: Mapping[str, Any] | None = None) -> Dict[str, Any]:
        return {**(extra_input or {}), "input": self.input_value}


def _slack_error_code(exc: SlackApiError) -> tuple[str, int | None]:
    response = getattr(exc, "response", None)
    if response is None:
        return str(exc), None
    status_code = getattr(response, "status_code", None)
    error_code = response.get("error") if hasattr(response, "get") else str(exc)
    return error_code or str(exc), status_code


def _describe_failure(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class ExecutionTracker:
    """Drive a submit action through running and then success or failure."""

    def __init__(
        self,
        *,
        slack_client: SlackClient,
        responder: ResponseUrlClient,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        workflow_timeout: float = DEFAULT_WORKFLOW_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._slack = slack_client
        self._responder = responder
        self._poll_interval = poll_interval
        self._workflow_timeout = workflow_timeout
        self._sleep = sleep
        self._clock = clock

    def run(self, command: NormalizedCommand, action: RegisteredAction) -> RunRecord:
        """Execute *action* for *command* and return the finished run record.

        Job failures are reported on the status message. Failures to dismiss
        the form, post the running status or publish the final status raise
        ``StatusUpdateError``.
        """

        log = structlog.get_logger().bind(
            action=command.action,
            channel=command.channel_id,
            user_name=command.user_name,
        )
        definition = action.definition
        header_blocks = build_header_blocks(definition.title, command.user_name)

        self._dismiss_form(command, log)
        message_ref = self._post_running(command.channel_id, header_blocks, log)
        record = RunRecord(
            action=command.action,
            channel_id=command.channel_id,
            message_ref=message_ref,
            input_value=command.input_value,
            header_blocks=header_blocks,
        )
        log = log.bind(message_ts=message_ref.ts)
        log.info("run_started", job_kind=action.job.kind)

        event = DispatchEvent(
            action=command.action,
            channel_id=command.channel_id,
            message_ref=message_ref,
            header_blocks=header_blocks,
            input_value=command.input_value,
        )
        log.debug("dispatch_event", dispatch=event.to_payload())
        try:
            output = self._execute(action, event.job_input(definition.extra_input), log)
        except Exception as exc:
            log.warning("job_failed", error=_describe_failure(exc), error_type=type(exc).__name__)
            record.finish(RunPhase.FAILED, _describe_failure(exc))
        else:
            record.finish(RunPhase.SUCCEEDED, output)

        self._publish_result(record, log)
        log.info("run_finished", phase=record.phase.value)
        return record

    def _dismiss_form(self, command: NormalizedCommand, log) -> None:
        try:
            self._responder.send(command.response_target, DISMISS_MESSAGE)
        except ResponseDeliveryError as exc:
            log.error("webhook_failed", operation="dismiss_form", error=str(exc), status_code=exc.status_code)
            raise StatusUpdateError("Failed to dismiss the input form") from exc

    def _post_running(self, channel_id: str, header_blocks: List[Dict[str, Any]], log) -> MessageRef:
        payload = build_status_message(header_blocks, RunPhase.RUNNING)
        try:
            response = self._slack.post_message(
                channel=channel_id,
                text=payload["text"],
                blocks=payload["blocks"],
            )
        except SlackApiError as exc:
            error_code, status_code = _slack_error_code(exc)
            log.error("webhook_failed", operation="post_running_status", error=error_code, status_code=status_code)
            raise StatusUpdateError("Failed to post the running status message") from exc

        channel = response.get("channel") or channel_id
        ts = response.get("ts")
        if not ts:
            log.error("webhook_failed", operation="post_running_status", error="missing_ts")
            raise StatusUpdateError("Slack response did not include a message timestamp")
        return MessageRef(channel=channel, ts=ts)

    def _execute(self, action: RegisteredAction, payload: Dict[str, Any], log) -> str:
        job = action.job
        if isinstance(job, DirectJob):
            return job.invoke(payload)
        if isinstance(job, WorkflowJob):
            return self._await_workflow(job, job.start(payload), log)
        raise TypeError(f"Unsupported job type {type(job).__name__}")

    def _await_workflow(self, job: WorkflowJob, execution_id: str, log) -> str:
        log = log.bind(execution_id=execution_id)
        deadline = self._clock() + self._workflow_timeout
        status = job.describe(execution_id)
        polls = 1

        while status.is_running:
            if self._clock() >= deadline:
                log.warning("workflow_timed_out", polls=polls)
                raise WorkflowTimeoutError(
                    f"Execution {execution_id} did not finish within {self._workflow_timeout:g} seconds"
                )
            self._sleep(self._poll_interval)
            status = job.describe(execution_id)
            polls += 1

        log.info("workflow_polled", status=status.status, polls=polls)
        if not status.succeeded:
            raise WorkflowExecutionFailed(status.failure_detail(), status=status.status)
        return status.output or ""

    def _publish_result(self, record: RunRecord, log) -> None:
        payload = build_status_message(record.header_blocks, record.phase, record.detail)
        detail_text = payload["blocks"][-1]["text"]["text"]
        if len(detail_text) > SECTION_TEXT_LIMIT:
            log.warning("status_detail_oversized", length=len(detail_text), limit=SECTION_TEXT_LIMIT)
        try:
            self._slack.update_message(
                channel=record.message_ref.channel,
                ts=record.message_ref.ts,
                text=payload["text"],
                blocks=payload["blocks"],
            )
        except SlackApiError as exc:
            error_code, status_code = _slack_error_code(exc)
            log.error(
                "webhook_failed",
                operation="update_status",
                phase=record.phase.value,
                error=error_code,
                status_code=status_code,
            )
            raise StatusUpdateError("Failed to update the status message") from exc
