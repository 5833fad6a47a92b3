# ruff: noqa: I001
"""Import parsed CNAB data into the shared database.

``import_cnab`` is the single entry point for writing: it parses the stream,
and only when every line is valid does it open a unit of work that

1. loads all existing ``Store`` rows named in the file with one query,
2. creates missing stores and updates owners that changed,
3. attaches one ``Transaction`` per parsed record through ``Transaction.store``
   (new stores get their ids at flush time),
4. flushes and commits once.

Any failure rolls the whole file back. Errors are returned inside
:class:`~cnab_import.models.ImportResult`, never raised.
"""

from __future__ import annotations

from collections.abc import Iterable
from os import PathLike
from pathlib import Path
from typing import IO

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.cnab import Store, Transaction, utcnow
from .logging_setup import get_logger
from .models import TRANSACTION_TYPES, ImportResult, ParseResult, StoreGroup, TransactionRecord
from .parser import parse_cnab

logger = get_logger("cnab_import.importer")

DATABASE_ERROR_MESSAGE = (
    "An error occurred while saving the data to the database. "
    "The file may contain invalid data or there may be a database issue."
)
UNEXPECTED_ERROR_MESSAGE = (
    "An unexpected error occurred while processing the file. "
    "Please try again or contact support if the problem persists."
)


def _load_existing_stores(session: Session, names: Iterable[str]) -> dict[str, Store]:
    """Return existing stores keyed by name, fetched in a single query."""

    stmt = select(Store).where(Store.name.in_(list(names)))
    return {store.name: store for store in session.scalars(stmt)}


def _build_transaction(store: Store, record: TransactionRecord) -> Transaction:
    # Description/nature come from the lookup again rather than from the parser.
    info = TRANSACTION_TYPES[record.transaction_type]
    return Transaction(
        store=store,
        transaction_type=int(record.transaction_type),
        date=record.date,
        amount=record.amount,
        cpf=record.cpf,
        card=record.card,
        time=record.time,
        nature=str(info.nature),
        description=info.description,
    )


def _merge_store(session: Session, existing: dict[str, Store], group: StoreGroup) -> Store:
    store = existing.get(group.name)
    if store is None:
        store = Store(name=group.name, owner=group.owner)
        session.add(store)
        existing[group.name] = store
        logger.debug("Creating store %r (owner=%r)", group.name, group.owner)
    elif store.owner != group.owner:
        logger.debug(
            "Updating owner of store %r: %r -> %r", group.name, store.owner, group.owner
        )
        store.owner = group.owner
        store.updated_at = utcnow()
    return store


def _persist(session: Session, parsed: ParseResult) -> int:
    existing = _load_existing_stores(session, parsed.stores.keys())

    imported = 0
    for group in parsed.stores.values():
        store = _merge_store(session, existing, group)
        for record in group.transactions:
            session.add(_build_transaction(store, record))
            imported += 1

    session.flush()
    session.commit()
    return imported


def import_cnab(session: Session, stream: IO[str] | IO[bytes]) -> ImportResult:
    """Parse ``stream`` and persist its stores and transactions atomically.

    Parameters
    ----------
    session:
        A session with no pending work; it is committed on success and rolled
        back on failure.
    stream:
        Text or binary stream holding the CNAB file. It is read but not closed.

    Returns
    -------
    ImportResult
        On parse errors: ``success=False`` with one ``"Line N: ..."`` entry per
        bad line and no database access. On a database or unexpected failure:
        ``success=False`` with a single generic message. Otherwise
        ``success=True`` with the number of transactions imported and of store
        groups touched (new or existing).
    """

    try:
        parsed = parse_cnab(stream)
    except Exception:
        logger.exception("Unexpected error while reading CNAB stream")
        return ImportResult.failure(UNEXPECTED_ERROR_MESSAGE)

    if parsed.errors:
        logger.warning(
            "Rejected CNAB file with %d invalid line(s); nothing was imported",
            len(parsed.errors),
        )
        return ImportResult(success=False, errors=tuple(parsed.errors))

    logger.info(
        "Importing %d transaction(s) for %d store(s)",
        parsed.transaction_count,
        len(parsed.stores),
    )

    try:
        imported = _persist(session, parsed)
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Database error during import: %s", e)
        return ImportResult.failure(DATABASE_ERROR_MESSAGE)
    except Exception as e:
        session.rollback()
        logger.exception("Unexpected error during import: %s", e)
        return ImportResult.failure(UNEXPECTED_ERROR_MESSAGE)

    logger.info("Imported %d transaction(s) for %d store(s)", imported, len(parsed.stores))
    return ImportResult(success=True, imported_count=imported, stores_count=len(parsed.stores))


def import_cnab_file(
    path: str | PathLike[str], *, database_url: str | None = None
) -> ImportResult:
    """Import a CNAB file from disk using a session from ``db.client``."""

    from db.client import get_session

    session = get_session(database_url=database_url)
    try:
        with Path(path).open("rb") as f:
            return import_cnab(session, f)
    finally:
        session.close()


__all__ = [
    "DATABASE_ERROR_MESSAGE",
    "UNEXPECTED_ERROR_MESSAGE",
    "import_cnab",
    "import_cnab_file",
]
