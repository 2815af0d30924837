"""Database engine and session utilities for the permission store."""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from slack_command_bridge.config import get_settings

Base = declarative_base()


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Return engine keyword arguments suited to *database_url*.

    Lookups run on request threads and background workers alike, so SQLite
    connections must be usable across threads.
    """

    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


@lru_cache()
def get_engine() -> Engine:
    """Create or return a cached SQLAlchemy engine."""

    database_url = get_settings().database_url
    return create_engine(database_url, future=True, echo=False, **_engine_options(database_url))


@lru_cache()
def get_session_factory() -> sessionmaker[Session]:
    """Return a cached session factory bound to the engine."""

    return sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, future=True, expire_on_commit=False)


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Provide a transactional scope for DB operations."""

    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create every table registered on :data:`Base`."""

    # models register themselves on Base at import time
    from slack_command_bridge import models  # noqa: F401

    Base.metadata.create_all(get_engine())
