"""Data models and the transaction-type lookup for ``cnab_import``.

Parsed records (``TransactionRecord``, ``StoreGroup``, ``ParseResult``) are
plain frozen/slotted dataclasses that live only for the duration of one import
call. ``ImportResult`` is a pydantic model because it is the one value handed
back to callers (CLI, upload handlers) and is serialized as-is.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum, StrEnum
from types import MappingProxyType
from typing import Self

from pydantic import BaseModel, ConfigDict, NonNegativeInt, model_validator

# ---------------------------------------------------------------------------
# Transaction types
# ---------------------------------------------------------------------------


class Nature(StrEnum):
    """Direction of a transaction from the store's point of view."""

    ENTRADA = "Entrada"
    SAIDA = "Saída"


class TransactionType(IntEnum):
    """CNAB transaction type codes (1-9).

    ``TransactionType(code)`` raises ``ValueError`` for any other code, so a
    value of this type is always a key of :data:`TRANSACTION_TYPES`.
    """

    DEBITO = 1
    BOLETO = 2
    FINANCIAMENTO = 3
    CREDITO = 4
    RECEBIMENTO_EMPRESTIMO = 5
    VENDAS = 6
    RECEBIMENTO_TED = 7
    RECEBIMENTO_DOC = 8
    ALUGUEL = 9

    @property
    def info(self) -> TransactionTypeInfo:
        return TRANSACTION_TYPES[self]


@dataclass(frozen=True, slots=True)
class TransactionTypeInfo:
    description: str
    nature: Nature
    signal: str

    @property
    def is_entrada(self) -> bool:
        return self.nature is Nature.ENTRADA


TRANSACTION_TYPES: MappingProxyType[TransactionType, TransactionTypeInfo] = MappingProxyType(
    {
        TransactionType.DEBITO: TransactionTypeInfo("Débito", Nature.ENTRADA, "+"),
        TransactionType.BOLETO: TransactionTypeInfo("Boleto", Nature.SAIDA, "-"),
        TransactionType.FINANCIAMENTO: TransactionTypeInfo("Financiamento", Nature.SAIDA, "-"),
        TransactionType.CREDITO: TransactionTypeInfo("Crédito", Nature.ENTRADA, "+"),
        TransactionType.RECEBIMENTO_EMPRESTIMO: TransactionTypeInfo(
            "Recebimento Empréstimo", Nature.ENTRADA, "+"
        ),
        TransactionType.VENDAS: TransactionTypeInfo("Vendas", Nature.ENTRADA, "+"),
        TransactionType.RECEBIMENTO_TED: TransactionTypeInfo("Recebimento TED", Nature.ENTRADA, "+"),
        TransactionType.RECEBIMENTO_DOC: TransactionTypeInfo("Recebimento DOC", Nature.ENTRADA, "+"),
        TransactionType.ALUGUEL: TransactionTypeInfo("Aluguel", Nature.SAIDA, "-"),
    }
)
"""Read-only lookup from type code to description, nature and signal."""


# ---------------------------------------------------------------------------
# Parsed (transient) records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """One parsed CNAB transaction.

    ``nature``, ``description`` and ``signal`` are never read from the file;
    they are derived from ``transaction_type``.
    """

    transaction_type: TransactionType
    date: dt.date
    amount: Decimal
    cpf: str
    card: str
    time: dt.time

    @property
    def nature(self) -> Nature:
        return self.transaction_type.info.nature

    @property
    def description(self) -> str:
        return self.transaction_type.info.description

    @property
    def signal(self) -> str:
        return self.transaction_type.info.signal

    @property
    def is_entrada(self) -> bool:
        return self.transaction_type.info.is_entrada


@dataclass(frozen=True, slots=True)
class ParsedLine:
    """A parsed line: the transaction plus the store it belongs to."""

    record: TransactionRecord
    store_name: str
    owner: str


@dataclass(slots=True)
class StoreGroup:
    """All transactions of one file that share a store name.

    ``owner`` is the owner seen on the first line that introduced ``name``.
    """

    name: str
    owner: str
    transactions: list[TransactionRecord] = field(default_factory=list)


@dataclass(slots=True)
class ParseResult:
    stores: dict[str, StoreGroup] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return sum(len(g.transactions) for g in self.stores.values())


# ---------------------------------------------------------------------------
# Import outcome
# ---------------------------------------------------------------------------


class ImportResult(BaseModel):
    """Outcome of one CNAB import.

    Invariants
    ----------
    - ``success=True``: ``errors`` is empty.
    - ``success=False``: at least one error and both counts are zero.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    success: bool
    imported_count: NonNegativeInt = 0
    stores_count: NonNegativeInt = 0
    errors: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_consistency(self) -> Self:
        if self.success and self.errors:
            raise ValueError("a successful import cannot carry errors")
        if not self.success:
            if not self.errors:
                raise ValueError("a failed import must carry at least one error")
            if self.imported_count or self.stores_count:
                raise ValueError("a failed import must report zero counts")
        return self

    @classmethod
    def failure(cls, *errors: str) -> ImportResult:
        return cls(success=False, errors=tuple(errors))


__all__ = [
    "Nature",
    "TransactionType",
    "TransactionTypeInfo",
    "TRANSACTION_TYPES",
    "TransactionRecord",
    "ParsedLine",
    "StoreGroup",
    "ParseResult",
    "ImportResult",
]
