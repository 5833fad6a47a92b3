"""Read-side helpers for imported stores."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from db.models.cnab import Store


def list_stores(session: Session) -> list[Store]:
    """Return every store ordered by name, with transactions eager-loaded."""

    stmt = select(Store).options(selectinload(Store.transactions)).order_by(Store.name)
    return list(session.scalars(stmt))


def get_store(session: Session, name: str) -> Store | None:
    """Return the store called ``name`` (transactions eager-loaded), if any."""

    stmt = select(Store).options(selectinload(Store.transactions)).where(Store.name == name)
    return session.scalars(stmt).one_or_none()


__all__ = ["list_stores", "get_store"]
