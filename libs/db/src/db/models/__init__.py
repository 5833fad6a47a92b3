"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the CNAB store/transaction models used by ``cnab_import``.
"""

from .cnab import Base, Store, Transaction

__all__ = [
    "Base",
    "Store",
    "Transaction",
]
