"""SQLAlchemy models backing the permission store."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import List

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from slack_command_bridge.db import Base


class BotUser(Base):
    """A Slack user allowed to talk to the bot and the actions they may run."""

    __tablename__ = "bot_users"

    slack_user_name: Mapped[str] = mapped_column(String(64), primary_key=True)
    permitted_actions: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )
