"""Exception hierarchy for the command bridge."""

from __future__ import annotations


class CommandBridgeError(Exception):
    """Base class for every error raised by the command bridge."""


class VerificationError(CommandBridgeError):
    """Raised when an inbound request fails signature verification."""


class MalformedTimestampError(VerificationError):
    """Raised when the timestamp header is missing or not an integer."""


class StaleRequestError(VerificationError):
    """Raised when the request timestamp falls outside the freshness window."""


class UnsupportedVersionError(VerificationError):
    """Raised when the signature uses a version other than ``v0``."""


class SignatureMismatchError(VerificationError):
    """Raised when the signature is absent, malformed or does not match."""


class AuthorizationError(CommandBridgeError):
    """Raised when a verified request is not allowed to run."""


class WrongChannelError(AuthorizationError):
    """Raised when the request originates from a non-permitted channel."""


class UserNotFoundError(AuthorizationError):
    """Raised when the permission store has no record for a user."""


class ActionNotPermittedError(AuthorizationError):
    """Raised when a known user requests an action outside their grants."""


class RoutingError(CommandBridgeError):
    """Raised when a request cannot be mapped to a handler."""


class UnknownActionError(RoutingError):
    """Raised when no handler is registered for an action."""


class MalformedPayloadError(RoutingError):
    """Raised when a verified request body cannot be normalised."""


class ExecutionError(CommandBridgeError):
    """Raised while running a job or reporting its status."""


class JobInvocationError(ExecutionError):
    """Raised when a direct job reports a failure."""


class WorkflowExecutionFailed(ExecutionError):
    """Raised when a workflow job reaches a non-successful terminal state."""

    def __init__(self, message: str, *, status: str | None = None) -> None:
        super().__init__(message)
        self.status = status


class WorkflowTimeoutError(ExecutionError):
    """Raised when a workflow job does not finish within the wait bound."""


class StatusUpdateError(ExecutionError):
    """Raised when a status message cannot be posted or updated."""


class RunTransitionError(ExecutionError):
    """Raised when a run record is moved through an invalid phase change."""


class ResponseDeliveryError(CommandBridgeError):
    """Raised when Slack rejects a reply sent through a response URL."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ActionDefinitionError(CommandBridgeError):
    """Raised when an action definition file cannot be loaded."""
