from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

if TYPE_CHECKING:
    from cnab_import.models import TransactionTypeInfo


class Base(DeclarativeBase):
    pass


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


# SQLite only autoincrements an INTEGER PRIMARY KEY (rowid alias).
_PK = BigInteger().with_variant(Integer, "sqlite")


# ---------------------------
# Core: stores
# ---------------------------


class Store(Base):
    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    transactions: Mapped[list[Transaction]] = relationship(
        back_populates="store",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Transaction.id",
    )

    # Uniqueness is what serializes concurrent imports creating the same store;
    # the losing transaction fails at flush time.
    __table_args__ = (UniqueConstraint("name", name="uq_stores_name"),)

    @property
    def balance(self) -> Decimal:
        """Signed sum of all transactions: Entrada adds, Saída subtracts."""

        return sum((t.signed_amount for t in self.transactions), Decimal("0.00"))

    def __repr__(self) -> str:
        return f"Store(id={self.id!r}, name={self.name!r}, owner={self.owner!r})"


# ---------------------------
# Core: transactions
# ---------------------------


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    transaction_type: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    cpf: Mapped[str] = mapped_column(String(11), nullable=False)
    card: Mapped[str] = mapped_column(String(12), nullable=False)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    # nature/description are copies of the type lookup taken at insert time.
    nature: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    store: Mapped[Store] = relationship(back_populates="transactions")

    __table_args__ = (
        CheckConstraint(
            "transaction_type BETWEEN 1 AND 9",
            name="ck_transactions_transaction_type",
        ),
    )

    # Derived views resolve through the validated enum, so an out-of-range code
    # raises ValueError instead of rendering a placeholder.

    @property
    def type_info(self) -> TransactionTypeInfo:
        from cnab_import.models import TRANSACTION_TYPES, TransactionType

        return TRANSACTION_TYPES[TransactionType(self.transaction_type)]

    @property
    def type_description(self) -> str:
        return self.type_info.description

    @property
    def signal(self) -> str:
        return self.type_info.signal

    @property
    def is_entrada(self) -> bool:
        return self.type_info.is_entrada

    @property
    def is_saida(self) -> bool:
        return not self.is_entrada

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_entrada else -self.amount

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, store_id={self.store_id!r}, "
            f"type={self.transaction_type!r}, amount={self.amount!r})"
        )


__all__ = [
    "Base",
    "Store",
    "Transaction",
    "utcnow",
]
