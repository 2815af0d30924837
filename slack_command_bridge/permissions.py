"""Permission store adapter mapping Slack users to their allowed actions."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable, Iterable

from sqlalchemy.orm import Session

from slack_command_bridge.db import session_scope
from slack_command_bridge.errors import UserNotFoundError
from slack_command_bridge.models import BotUser

SessionFactory = Callable[[], AbstractContextManager[Session]]


@dataclass(frozen=True)
class Principal:
    """A known Slack user and the action bases they may trigger."""

    user_name: str
    permitted_action_bases: frozenset[str]

    @classmethod
    def from_actions(cls, user_name: str, actions: Iterable[str]) -> "Principal":
        cleaned = frozenset(action.strip() for action in actions if action and action.strip())
        return cls(user_name=user_name, permitted_action_bases=cleaned)


class PermissionStore:
    """Read (and administer) bot users kept in the ``bot_users`` table."""

    def __init__(self, *, session_factory: SessionFactory = session_scope) -> None:
        self._session_factory = session_factory

    def lookup(self, user_name: str) -> Principal:
        """Return the principal for *user_name* or raise ``UserNotFoundError``."""

        with self._session_factory() as session:
            user = session.get(BotUser, user_name)
            if user is None:
                raise UserNotFoundError(f"User '{user_name}' is not registered.")
            return Principal.from_actions(user.slack_user_name, user.permitted_actions or [])

    def grant(self, user_name: str, actions: Iterable[str]) -> Principal:
        """Add *actions* to the user's grants, creating the user if needed."""

        with self._session_factory() as session:
            user = session.get(BotUser, user_name)
            if user is None:
                user = BotUser(slack_user_name=user_name, permitted_actions=[])
                session.add(user)
            merged = list(dict.fromkeys([*(user.permitted_actions or []), *actions]))
            user.permitted_actions = [action for action in merged if action and action.strip()]
            user.updated_at = datetime.now(UTC)
            session.flush()
            return Principal.from_actions(user.slack_user_name, user.permitted_actions)

    def revoke(self, user_name: str) -> bool:
        """Delete the user record; return False when it did not exist."""

        with self._session_factory() as session:
            user = session.get(BotUser, user_name)
            if user is None:
                return False
            session.delete(user)
            return True
