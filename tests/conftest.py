"""Pytest configuration for test isolation.

Two pieces of process-wide state would otherwise leak between tests:

- ``db.client`` keeps one shared engine per process and refuses to rebind it
  to a different URL. Each test gets its own file-backed SQLite database, so
  the engine is disposed after every test that used one.
- ``cnab_import.logging_setup.configure_logging`` runs once per process and
  detaches the package logger from the root logger. The CLI tests trigger it,
  so it is undone after each test to keep ``caplog`` working everywhere.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from cnab_import import logging_setup
from db.client import dispose_engine, get_session
from tests.helpers.db import bootstrap_sqlite_db

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture(autouse=True)
def _isolate_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("CNAB_IMPORT_LOG_LEVEL", raising=False)
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    yield
    pkg_logger = logging.getLogger("cnab_import")
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True


@pytest.fixture
def db_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """URL of a fresh, schema-initialized SQLite database for this test."""

    monkeypatch.delenv("DATABASE_URL", raising=False)
    url = bootstrap_sqlite_db(tmp_path / "cnab.db")
    yield url
    dispose_engine()


@pytest.fixture
def session(db_url: str) -> Iterator[Session]:
    s = get_session(database_url=db_url)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def sample_cnab_path() -> Path:
    return DATA_DIR / "CNAB.txt"
