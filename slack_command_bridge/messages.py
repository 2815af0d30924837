"""Block Kit builders for menus, forms, denials and run status messages."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List

from slack_command_bridge.requests import FORM_INPUT_ACTION_ID, FORM_INPUT_BLOCK_ID

DisplayDocument = Dict[str, Any]

DENIAL_TEXT = "You are not authorized to use this command here"
VERIFICATION_FAILURE_TEXT = "We could not verify this request came from Slack. Please try again."
PAYLOAD_ERROR_TEXT = "Unable to process this request payload."
WELCOME_TEXT = "Hello! I'm a slack bot here to help you.\n\n *Please select an action:*"
DETAILS_HEADING = "*Response Details*"
# Slack rejects section text longer than this
SECTION_TEXT_LIMIT = 3000

DISMISS_MESSAGE: DisplayDocument = {"delete_original": True}


class RunPhase(str, Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_STATUS_TEXT = {
    RunPhase.RUNNING: ":arrow_forward: Execution has started...",
    RunPhase.SUCCEEDED: ":white_check_mark: Execution was successful!",
    RunPhase.FAILED: ":no_entry: Execution has failed. Please see details below",
}


def _mrkdwn_section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _plain_text(text: str) -> Dict[str, Any]:
    return {"type": "plain_text", "text": text, "emoji": True}


def _ephemeral(text: str) -> DisplayDocument:
    return {"response_type": "ephemeral", "text": text}


def build_denial_message() -> DisplayDocument:
    """Uniform reply for channel, user and permission failures."""

    return _ephemeral(DENIAL_TEXT)


def build_verification_failure_message() -> DisplayDocument:
    return _ephemeral(VERIFICATION_FAILURE_TEXT)


def build_payload_error_message() -> DisplayDocument:
    return _ephemeral(PAYLOAD_ERROR_TEXT)


def build_welcome_message(actions: Iterable[Any]) -> DisplayDocument:
    """Build the ephemeral action menu; *actions* need ``name`` and ``definition.title``."""

    buttons: List[Dict[str, Any]] = [
        {
            "type": "button",
            "text": _plain_text(action.definition.title),
            "action_id": action.name,
        }
        for action in actions
    ]

    blocks: List[Dict[str, Any]] = [_mrkdwn_section(WELCOME_TEXT), {"type": "divider"}]
    if buttons:
        blocks.append({"type": "actions", "elements": buttons})
    else:
        blocks.append(_mrkdwn_section("_No actions are configured yet._"))

    return {
        "response_type": "ephemeral",
        "text": "Please select an action.",
        "blocks": blocks,
    }


def build_form_message(*, title: str, action: str, description: str) -> DisplayDocument:
    """Build the input form that replaces the menu for *action*."""

    submit_action = f"{action}/submit"
    return {
        "replace_original": True,
        "text": title,
        "blocks": [
            {"type": "header", "text": _plain_text(title)},
            _mrkdwn_section(description),
            {
                "type": "input",
                "block_id": FORM_INPUT_BLOCK_ID,
                "element": {"type": "plain_text_input", "action_id": FORM_INPUT_ACTION_ID},
                "label": _plain_text("Input Value"),
            },
            {
                "type": "actions",
                "elements": [
                    {
                        "action_id": submit_action,
                        "type": "button",
                        "style": "primary",
                        "text": _plain_text("Submit"),
                        "value": submit_action,
                    }
                ],
            },
        ],
    }


def build_header_blocks(title: str, user_name: str) -> List[Dict[str, Any]]:
    return [
        {"type": "header", "text": _plain_text(title)},
        _mrkdwn_section(f"@{user_name} initiated this workflow."),
        {"type": "divider"},
    ]


def render_status(phase: RunPhase, detail: str | None = None) -> DisplayDocument:
    """Render the status section for *phase*.

    ``detail`` is wrapped verbatim in a code block for terminal phases and
    ignored while running. The result is rebuilt on every call, so equal
    inputs always produce equal documents.
    """

    phase = RunPhase(phase)
    text = _STATUS_TEXT[phase]
    blocks: List[Dict[str, Any]] = [_mrkdwn_section(text)]
    if phase is not RunPhase.RUNNING:
        blocks.append(_mrkdwn_section(DETAILS_HEADING))
        blocks.append(_mrkdwn_section(f"```{detail if detail is not None else ''}```"))

    return {"text": text, "blocks": blocks}


def build_status_message(
    header_blocks: List[Dict[str, Any]],
    phase: RunPhase,
    detail: str | None = None,
) -> DisplayDocument:
    """Compose the channel status message: header followed by rendered status."""

    status = render_status(phase, detail)
    return {
        "text": status["text"],
        "blocks": [*(dict(block) for block in header_blocks), *status["blocks"]],
    }
