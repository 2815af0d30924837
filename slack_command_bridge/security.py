"""Utilities for validating Slack request signatures."""

from __future__ import annotations

import hmac
import time
from hashlib import sha256

from slack_command_bridge.errors import (
    MalformedTimestampError,
    SignatureMismatchError,
    StaleRequestError,
    UnsupportedVersionError,
)

SLACK_SIGNATURE_HEADER = "X-Slack-Signature"
SLACK_TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
VERSION = "v0"
DEFAULT_TOLERANCE = 60 * 5  # five minutes


def _as_bytes(value: bytes | str) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def compute_signature(signing_secret: str, timestamp: str, body: bytes | str) -> str:
    """Return Slack-compatible signature for the provided payload."""

    basestring = f"{VERSION}:{timestamp}:".encode("utf-8") + _as_bytes(body)
    secret = signing_secret.encode("utf-8")
    digest = hmac.new(secret, basestring, sha256).hexdigest()
    return f"{VERSION}={digest}"


def _split_signature(signature: str) -> tuple[str, str]:
    version, separator, digest = signature.partition("=")
    if not separator or not digest or not version.startswith("v") or len(version) < 2:
        raise SignatureMismatchError("Signature header is malformed.")
    return version, digest


def verify_signature(
    *,
    body: bytes | str,
    timestamp: str | None,
    signature: str | None,
    signing_secret: str,
    now: float | None = None,
    tolerance: int = DEFAULT_TOLERANCE,
) -> None:
    """Validate Slack signature and timestamp, raising a ``VerificationError``.

    Only staleness is checked against *now*; timestamps from the future are
    accepted. The staleness check runs before the signature is inspected.
    """

    try:
        request_ts = int((timestamp or "").strip())
    except ValueError as exc:
        raise MalformedTimestampError("Request timestamp is not an integer.") from exc

    current_ts = int(time.time() if now is None else now)
    if request_ts < current_ts - tolerance:
        raise StaleRequestError(f"Request timestamp {request_ts} is older than {tolerance} seconds.")

    if not signature:
        raise SignatureMismatchError("Signature header is missing.")

    version, _ = _split_signature(signature.strip())
    if version != VERSION:
        raise UnsupportedVersionError(f"Unsupported signature version '{version}'.")

    expected = compute_signature(signing_secret, (timestamp or "").strip(), body)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.strip().encode("utf-8")):
        raise SignatureMismatchError("Signature does not match the request body.")
