"""Process-wide collaborators shared by every request."""

from __future__ import annotations

import threading
import time
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict

import structlog

from slack_command_bridge.actions import ActionRegistry, build_registry, load_action_definitions
from slack_command_bridge.authorization import ChannelPolicy, PrincipalLookup
from slack_command_bridge.aws_clients import (
    build_lambda_client,
    build_secretsmanager_client,
    build_stepfunctions_client,
)
from slack_command_bridge.config import AppSettings, get_settings
from slack_command_bridge.credentials import SlackCredentials, load_credentials
from slack_command_bridge.permissions import PermissionStore
from slack_command_bridge.slack_client import ResponseUrlClient, SlackClient
from slack_command_bridge.tracker import ExecutionTracker

_CLIENT_BUILDERS: Dict[str, Callable[[str], Any]] = {
    "lambda": build_lambda_client,
    "stepfunctions": build_stepfunctions_client,
    "secretsmanager": build_secretsmanager_client,
}


class AppRuntime:
    """Settings, credentials and clients built once per process.

    Collaborators passed to the constructor are used as-is; the rest are
    created by :meth:`ensure_initialized` on first use and never rebuilt.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        credentials: SlackCredentials | None = None,
        slack_client: SlackClient | None = None,
        responder: ResponseUrlClient | None = None,
        permission_store: PrincipalLookup | None = None,
        registry: ActionRegistry | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._credentials = credentials
        self._slack_client = slack_client
        self._responder = responder
        self._permission_store = permission_store
        self._registry = registry
        self._tracker: ExecutionTracker | None = None
        self._sleep = sleep
        self._clock = clock
        self._aws_clients: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def ensure_initialized(self) -> "AppRuntime":
        """Build missing collaborators exactly once, even under concurrent calls."""

        if self._initialized:
            return self
        with self._lock:
            if not self._initialized:
                self._initialize()
                self._initialized = True
        return self

    def _initialize(self) -> None:
        settings = self.settings
        log = structlog.get_logger()

        if self._credentials is None:
            self._credentials = load_credentials(
                settings,
                secrets_client=lambda: self._aws_client("secretsmanager"),
            )
        if self._slack_client is None:
            self._slack_client = SlackClient(token=self._credentials.bot_token)
        if self._responder is None:
            self._responder = ResponseUrlClient()
        if self._permission_store is None:
            self._permission_store = PermissionStore()
        if self._registry is None:
            definitions = load_action_definitions(Path(settings.action_definition_dir))
            self._registry = build_registry(
                definitions,
                lambda_client=lambda: self._aws_client("lambda"),
                stepfunctions_client=lambda: self._aws_client("stepfunctions"),
            )
        self._tracker = ExecutionTracker(
            slack_client=self._slack_client,
            responder=self._responder,
            poll_interval=settings.workflow_poll_interval,
            workflow_timeout=float(settings.workflow_timeout_seconds),
            sleep=self._sleep,
            clock=self._clock,
        )
        log.info("runtime_initialized", actions=[action.name for action in self._registry])

    def _aws_client(self, service: str) -> Any:
        client = self._aws_clients.get(service)
        if client is None:
            client = _CLIENT_BUILDERS[service](self.settings.aws_region)
            self._aws_clients[service] = client
        return client

    def _require(self, value: Any, name: str) -> Any:
        if not self._initialized:
            raise RuntimeError(f"Runtime is not initialised; call ensure_initialized() before using {name}")
        return value

    @property
    def settings(self) -> AppSettings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def channel_policy(self) -> ChannelPolicy:
        return ChannelPolicy(permitted_channel_id=self.settings.permitted_channel_id)

    @property
    def credentials(self) -> SlackCredentials:
        return self._require(self._credentials, "credentials")

    @property
    def slack_client(self) -> SlackClient:
        return self._require(self._slack_client, "slack_client")

    @property
    def responder(self) -> ResponseUrlClient:
        return self._require(self._responder, "responder")

    @property
    def permission_store(self) -> PrincipalLookup:
        return self._require(self._permission_store, "permission_store")

    @property
    def registry(self) -> ActionRegistry:
        return self._require(self._registry, "registry")

    @property
    def tracker(self) -> ExecutionTracker:
        return self._require(self._tracker, "tracker")


@lru_cache()
def get_runtime() -> AppRuntime:
    """Return the process-wide runtime (not yet initialised)."""

    return AppRuntime()
