"""db: shared database library (SQLAlchemy/Alembic).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic autogenerate/targeting
- ORM models in ``db.models.cnab`` (re-exported for convenience)
- ``create_schema`` for development databases that skip migrations
- Engine/session helpers in ``db.client``
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from .models.cnab import Base, Store, Transaction

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata


def create_schema(engine: Engine) -> None:
    """Create all tables that do not exist yet (SQLite/dev convenience)."""

    metadata.create_all(bind=engine)


__all__ = [
    "Base",
    "metadata",
    "create_schema",
    "Store",
    "Transaction",
]
