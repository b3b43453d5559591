"""Centralized SQLAlchemy engine/session helpers for the workspace.

Usage
-----
from db.client import session_scope

with session_scope() as s:
    s.execute(...)

The URL comes from the ``database_url`` argument, then ``DATABASE_URL``, then
a local SQLite file under ``./.cashflow/``. One engine is kept per URL so a
process (or a test session) can talk to several databases.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

DEFAULT_DATABASE_URL = "sqlite:///./.cashflow/statements.db"

_LOCK = threading.Lock()
_ENGINES: dict[str, tuple[Engine, sessionmaker[Session]]] = {}


def resolve_database_url(override: str | None = None) -> str:
    return override or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    path = parsed.database
    if not path or path == ":memory:" or path.startswith("file:"):
        return
    Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)


def _entry(database_url: str | None) -> tuple[Engine, sessionmaker[Session]]:
    url = resolve_database_url(database_url)
    with _LOCK:
        entry = _ENGINES.get(url)
        if entry is None:
            _ensure_sqlite_dir(url)
            engine = create_engine(url, pool_pre_ping=True)
            entry = (engine, sessionmaker(bind=engine, expire_on_commit=False, class_=Session))
            _ENGINES[url] = entry
        return entry


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the shared engine for the resolved URL, creating it on first use."""

    return _entry(database_url)[0]


def get_session(*, database_url: str | None = None) -> Session:
    """Return a new SQLAlchemy session bound to the shared engine."""

    return _entry(database_url)[1]()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_schema(*, database_url: str | None = None) -> None:
    """Create all tables known to ``db.metadata``.

    Intended for local SQLite files; managed databases are migrated with
    Alembic (``libs/db/alembic``).
    """

    from .models import Base

    Base.metadata.create_all(get_engine(database_url=database_url))


def dispose_engines() -> None:
    """Dispose and forget every cached engine."""

    with _LOCK:
        entries = list(_ENGINES.values())
        _ENGINES.clear()
    for engine, _maker in entries:
        engine.dispose()


__all__ = [
    "DEFAULT_DATABASE_URL",
    "create_schema",
    "dispose_engines",
    "get_engine",
    "get_session",
    "resolve_database_url",
    "session_scope",
]
