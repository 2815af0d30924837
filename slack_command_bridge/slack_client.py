"""Thin wrapper utilities around the Slack Web API and response URLs."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from slack_sdk import WebClient
from slack_sdk.webhook import WebhookClient

from slack_command_bridge.errors import ResponseDeliveryError


class SlackClient:
    """Encapsulate Slack WebClient interactions for easier testing."""

    def __init__(self, *, token: str | None = None, client: WebClient | None = None) -> None:
        if client is None and token is None:
            raise ValueError("Either an instantiated client or a bot token must be provided.")

        self._client = client or WebClient(token=token)

    @property
    def client(self) -> WebClient:
        """Expose the underlying WebClient for advanced use cases."""

        return self._client

    def post_message(
        self,
        *,
        channel: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]],
    ) -> Mapping[str, Any]:
        """Post a message with Block Kit content to a Slack channel."""

        return self._client.chat_postMessage(channel=channel, text=text, blocks=list(blocks))

    def update_message(
        self,
        *,
        channel: str,
        ts: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]],
    ) -> Mapping[str, Any]:
        """Update an existing Slack message."""

        return self._client.chat_update(channel=channel, ts=ts, text=text, blocks=list(blocks))


class ResponseUrlClient:
    """Send ephemeral replies, replacements and deletions via ``response_url``."""

    def __init__(self, *, webhook_factory: Callable[[str], WebhookClient] | None = None) -> None:
        self._webhook_factory = webhook_factory or (lambda url: WebhookClient(url=url))

    def send(self, response_url: str, body: Mapping[str, Any]) -> None:
        """POST *body* to *response_url*, raising ``ResponseDeliveryError`` on rejection."""

        if not response_url:
            raise ResponseDeliveryError("No response_url available for this request.")

        response = self._webhook_factory(response_url).send_dict(dict(body))
        if response.status_code != 200:
            raise ResponseDeliveryError(
                f"Slack rejected the response_url reply with status {response.status_code}",
                status_code=response.status_code,
                body=response.body,
            )
