"""Dispatch authorized commands to their handler."""

from __future__ import annotations

from concurrent.futures import Future

import structlog

from slack_command_bridge.actions import ActionRegistry
from slack_command_bridge.authorization import AuthorizationDecision, Unauthorized
from slack_command_bridge.background import run_job_async
from slack_command_bridge.errors import UnknownActionError
from slack_command_bridge.messages import (
    build_denial_message,
    build_form_message,
    build_welcome_message,
)
from slack_command_bridge.requests import NormalizedCommand
from slack_command_bridge.routing import Form, Submit, Welcome, resolve_route
from slack_command_bridge.runtime import AppRuntime
from slack_command_bridge.slack_client import ResponseUrlClient
from slack_command_bridge.tracker import ExecutionTracker


def dispatch(
    command: NormalizedCommand,
    *,
    registry: ActionRegistry,
    responder: ResponseUrlClient,
    tracker: ExecutionTracker,
) -> Future | None:
    """Serve *command*; submit actions return the Future of their job run."""

    log = structlog.get_logger().bind(action=command.action, user_name=command.user_name)

    try:
        route, action = resolve_route(command.action, registry)
    except UnknownActionError as exc:
        log.error("unknown_action", error=str(exc))
        raise

    log.info("command_dispatched", route=type(route).__name__.lower())

    if isinstance(route, Welcome):
        responder.send(command.response_target, build_welcome_message(registry))
        return None
    if isinstance(route, Form):
        definition = action.definition
        responder.send(
            command.response_target,
            build_form_message(title=definition.title, action=route.base, description=definition.description),
        )
        return None
    if isinstance(route, Submit):
        return run_job_async(tracker.run, command, action)
    raise TypeError(f"Unhandled route {route!r}")


def handle_decision(runtime: AppRuntime, decision: AuthorizationDecision) -> Future | None:
    """Reply to a denied request or dispatch an authorized one."""

    if isinstance(decision, Unauthorized):
        if decision.command is None:
            # unverified requests are answered in the HTTP response only
            return None
        runtime.responder.send(decision.command.response_target, build_denial_message())
        return None

    return dispatch(
        decision.command,
        registry=runtime.registry,
        responder=runtime.responder,
        tracker=runtime.tracker,
    )
