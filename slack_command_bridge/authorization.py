"""The single authorization entry point for inbound Slack requests.

``authorize`` verifies the signature, normalises the payload, checks the
channel, looks up the user and matches the action against their grants, in
that order, stopping at the first failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import structlog

from slack_command_bridge.errors import (
    ActionNotPermittedError,
    AuthorizationError,
    StaleRequestError,
    UserNotFoundError,
    VerificationError,
    WrongChannelError,
)
from slack_command_bridge.permissions import Principal
from slack_command_bridge.requests import (
    WELCOME_ACTION,
    InboundRequest,
    NormalizedCommand,
    action_base_of,
    parse_command,
)
from slack_command_bridge.security import DEFAULT_TOLERANCE, verify_signature


class DenialReason(str, Enum):
    INVALID_SIGNATURE = "invalid_signature"
    STALE_REQUEST = "stale_request"
    WRONG_CHANNEL = "wrong_channel"
    UNKNOWN_USER = "unknown_user"
    ACTION_NOT_PERMITTED = "action_not_permitted"

    @property
    def is_verification_failure(self) -> bool:
        return self in (DenialReason.INVALID_SIGNATURE, DenialReason.STALE_REQUEST)


@dataclass(frozen=True)
class Authorized:
    principal: Principal
    command: NormalizedCommand


@dataclass(frozen=True)
class Unauthorized:
    reason: DenialReason
    command: NormalizedCommand | None = None
    error: Exception | None = None


AuthorizationDecision = Authorized | Unauthorized


class PrincipalLookup(Protocol):
    def lookup(self, user_name: str) -> Principal: ...


@dataclass(frozen=True)
class ChannelPolicy:
    """The single channel the bot accepts commands from."""

    permitted_channel_id: str

    def check(self, channel_id: str) -> None:
        if channel_id != self.permitted_channel_id:
            raise WrongChannelError(f"Channel '{channel_id}' is not permitted")


def is_action_permitted(principal: Principal, command: NormalizedCommand) -> bool:
    """Return True when *principal* may run ``command.action``."""

    if command.action == WELCOME_ACTION:
        return True

    base = command.action_base or action_base_of(command.action)
    for permitted in principal.permitted_action_bases:
        if base == permitted or command.action.startswith(permitted):
            return True
    return False


def _verification_reason(error: VerificationError) -> DenialReason:
    if isinstance(error, StaleRequestError):
        return DenialReason.STALE_REQUEST
    return DenialReason.INVALID_SIGNATURE


def _authorization_reason(error: AuthorizationError) -> DenialReason:
    if isinstance(error, WrongChannelError):
        return DenialReason.WRONG_CHANNEL
    if isinstance(error, UserNotFoundError):
        return DenialReason.UNKNOWN_USER
    return DenialReason.ACTION_NOT_PERMITTED


def authorize(
    inbound: InboundRequest,
    *,
    signing_secret: str,
    channel_policy: ChannelPolicy,
    store: PrincipalLookup,
    now: float | None = None,
    tolerance: int = DEFAULT_TOLERANCE,
) -> AuthorizationDecision:
    """Decide whether *inbound* may run.

    Raises ``MalformedPayloadError`` when a verified body cannot be
    normalised; every other failure is returned as :class:`Unauthorized`.
    """

    log = structlog.get_logger()

    try:
        verify_signature(
            body=inbound.body,
            timestamp=inbound.timestamp,
            signature=inbound.signature,
            signing_secret=signing_secret,
            now=now,
            tolerance=tolerance,
        )
    except VerificationError as exc:
        reason = _verification_reason(exc)
        log.warning("request_denied", reason=reason.value, error=str(exc))
        return Unauthorized(reason=reason, error=exc)

    command = parse_command(inbound)
    log = log.bind(channel_id=command.channel_id, user_name=command.user_name, action=command.action)

    try:
        channel_policy.check(command.channel_id)
        principal = store.lookup(command.user_name)
        if not is_action_permitted(principal, command):
            raise ActionNotPermittedError(f"'{command.user_name}' may not run '{command.action}'")
    except AuthorizationError as exc:
        reason = _authorization_reason(exc)
        log.warning("request_denied", reason=reason.value, error=str(exc))
        return Unauthorized(reason=reason, command=command, error=exc)

    log.info("request_authorized")
    return Authorized(principal=principal, command=command)
