"""Database helpers for the airline waitlist system."""
from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

# Records live in memory unless pointed at a file, mirroring the waitlist
# forests which are always rebuilt at start-up.
DEFAULT_DB_URL = os.environ.get("AIRLINE_DB_URL", "sqlite+pysqlite:///:memory:")


def create_session_factory(
    db_url: str | None = None,
    *,
    echo: bool = False,
    connect_args: Dict[str, object] | None = None,
) -> Tuple[Engine, sessionmaker[Session]]:
    """Return an engine/session factory pair, SQLite in memory by default."""

    db_url = db_url or DEFAULT_DB_URL
    engine_kwargs: Dict[str, object] = {"echo": echo, "future": True}
    if db_url.startswith("sqlite"):
        final_connect_args = {"check_same_thread": False}
        if connect_args:
            final_connect_args.update(connect_args)
        if db_url.endswith(":memory:"):
            # One shared connection, otherwise every session sees an empty database.
            engine_kwargs["poolclass"] = StaticPool
    else:
        final_connect_args = connect_args or {}

    engine = create_engine(db_url, connect_args=final_connect_args, **engine_kwargs)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False, future=True)
    return engine, session_factory


def init_db(db_url: str | None = None, *, echo: bool = False) -> sessionmaker[Session]:
    """Create all tables and return a session factory."""

    engine, session_factory = create_session_factory(db_url, echo=echo)
    Base.metadata.create_all(engine)
    return session_factory


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
