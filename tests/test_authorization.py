"""Tests for the request authorization gate."""

import json
from pathlib import Path
import sys
from urllib.parse import urlencode

import pytest
from structlog.testing import capture_logs

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from slack_command_bridge import security  # noqa: E402
from slack_command_bridge.authorization import (  # noqa: E402
    Authorized,
    ChannelPolicy,
    DenialReason,
    Unauthorized,
    authorize,
    is_action_permitted,
)
from slack_command_bridge.errors import MalformedPayloadError, UserNotFoundError  # noqa: E402
from slack_command_bridge.permissions import Principal  # noqa: E402
from slack_command_bridge.requests import InboundRequest, NormalizedCommand  # noqa: E402

SECRET = "signing-secret"
NOW = 1_700_000_000
CHANNEL = "C123"


class FakeStore:
    def __init__(self, users=None):
        self.users = users or {}
        self.lookups = []

    def lookup(self, user_name):
        self.lookups.append(user_name)
        if user_name not in self.users:
            raise UserNotFoundError(user_name)
        return Principal.from_actions(user_name, self.users[user_name])


def _payload_body(action="deploy/submit", channel=CHANNEL, user="alice"):
    payload = {
        "channel": {"id": channel},
        "user": {"username": user},
        "actions": [{"action_id": action}],
        "response_url": "https://hooks.slack.test/actions/1",
    }
    return urlencode({"payload": json.dumps(payload)}).encode("utf-8")


def _inbound(body, *, timestamp=str(NOW), signature=None):
    if signature is None:
        signature = security.compute_signature(SECRET, timestamp, body)
    return InboundRequest(
        timestamp=timestamp,
        signature=signature,
        content_type="application/x-www-form-urlencoded",
        body=body,
    )


def _authorize(inbound, store):
    return authorize(
        inbound,
        signing_secret=SECRET,
        channel_policy=ChannelPolicy(permitted_channel_id=CHANNEL),
        store=store,
        now=NOW,
    )


def test_permitted_user_is_authorized():
    store = FakeStore({"alice": ["deploy"]})

    with capture_logs() as logs:
        decision = _authorize(_inbound(_payload_body()), store)

    assert isinstance(decision, Authorized)
    assert decision.principal.user_name == "alice"
    assert decision.command.action == "deploy/submit"
    assert [entry["event"] for entry in logs] == ["request_authorized"]


def test_bad_signature_short_circuits_without_lookup():
    store = FakeStore({"alice": ["deploy"]})

    with capture_logs() as logs:
        decision = _authorize(_inbound(_payload_body(), signature="v0=deadbeef"), store)

    assert isinstance(decision, Unauthorized)
    assert decision.reason is DenialReason.INVALID_SIGNATURE
    assert decision.reason.is_verification_failure
    assert decision.command is None
    assert store.lookups == []
    assert logs[0]["event"] == "request_denied"
    assert logs[0]["reason"] == "invalid_signature"


def test_stale_request_is_denied_without_lookup():
    store = FakeStore({"alice": ["deploy"]})
    timestamp = str(NOW - 301)

    decision = _authorize(_inbound(_payload_body(), timestamp=timestamp), store)

    assert isinstance(decision, Unauthorized)
    assert decision.reason is DenialReason.STALE_REQUEST
    assert store.lookups == []


def test_wrong_channel_is_denied_without_lookup():
    store = FakeStore({"alice": ["deploy"]})

    decision = _authorize(_inbound(_payload_body(channel="C999")), store)

    assert isinstance(decision, Unauthorized)
    assert decision.reason is DenialReason.WRONG_CHANNEL
    assert not decision.reason.is_verification_failure
    assert decision.command.channel_id == "C999"
    assert store.lookups == []


def test_unknown_user_is_denied():
    store = FakeStore()

    decision = _authorize(_inbound(_payload_body(user="mallory")), store)

    assert isinstance(decision, Unauthorized)
    assert decision.reason is DenialReason.UNKNOWN_USER
    assert store.lookups == ["mallory"]


def test_action_outside_grants_is_denied():
    store = FakeStore({"alice": ["rollback"]})

    decision = _authorize(_inbound(_payload_body(action="deploy/submit")), store)

    assert isinstance(decision, Unauthorized)
    assert decision.reason is DenialReason.ACTION_NOT_PERMITTED
    assert decision.command.response_target == "https://hooks.slack.test/actions/1"


def test_welcome_is_allowed_for_known_user_without_grants():
    store = FakeStore({"alice": []})

    decision = _authorize(_inbound(_payload_body(action="welcome")), store)

    assert isinstance(decision, Authorized)


def test_malformed_verified_payload_raises():
    body = b"foo=bar"

    with pytest.raises(MalformedPayloadError):
        _authorize(_inbound(body), FakeStore())


def _command(action, base=None):
    return NormalizedCommand(
        channel_id=CHANNEL,
        user_name="alice",
        action=action,
        action_base=base,
        response_target="https://hooks.slack.test/1",
    )


@pytest.mark.parametrize(
    ("grants", "action", "allowed"),
    [
        (["deploy"], "deploy", True),
        (["deploy"], "deploy/submit", True),
        (["deploy"], "deploy-prod/submit", True),
        (["deploy/submit"], "deploy/submit", True),
        (["rollback"], "deploy/submit", False),
        ([], "welcome", True),
        ([], "deploy", False),
    ],
)
def test_is_action_permitted(grants, action, allowed):
    principal = Principal.from_actions("alice", grants)

    assert is_action_permitted(principal, _command(action)) is allowed
