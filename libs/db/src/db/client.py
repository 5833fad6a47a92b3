"""Engine and session helpers shared by the importer, the CLI and Alembic.

The database is chosen by ``DATABASE_URL`` (or an explicit ``database_url``)
and bound once per process::

    from db.client import session_scope

    with session_scope() as s:
        s.scalars(select(Store))

SQLite connections get ``PRAGMA foreign_keys = ON`` so that deleting a store
cascades to its transactions the same way it does on PostgreSQL.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; pass --database-url or set it in .env")
    return url


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:  # pragma: no cover - driver hook
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def _create_engine(url: str) -> Engine:
    if make_url(url).get_backend_name() == "sqlite":
        engine = create_engine(url)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, pool_pre_ping=True)


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process-wide engine, creating it on first use.

    Asking for a different URL once an engine exists raises ``RuntimeError``;
    call :func:`dispose_engine` first to switch databases.
    """

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _database_url(database_url)
    if _ENGINE is None:
        _ENGINE = _create_engine(url)
        _SESSION_MAKER = sessionmaker(bind=_ENGINE, expire_on_commit=False)
        _DB_URL = url
    elif url != _DB_URL:
        raise RuntimeError(
            "database engine already bound to a different URL; call dispose_engine() first"
        )
    return _ENGINE


def get_session(*, database_url: str | None = None) -> Session:
    """Return a new session on the shared engine. The caller closes it."""

    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Commit on success, roll back on error, always close."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engine() -> None:
    """Drop the shared engine so the next call may bind a different URL."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
    _DB_URL = None


__all__ = [
    "dispose_engine",
    "get_engine",
    "get_session",
    "session_scope",
]
