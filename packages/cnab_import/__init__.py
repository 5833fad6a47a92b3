"""Public interface for the ``cnab_import`` package.

This module exposes the parser, the importer and the public models as the
stable import surface. There is no runtime logic here, only re-exports.
"""

from .importer import import_cnab, import_cnab_file
from .models import (
    TRANSACTION_TYPES,
    ImportResult,
    Nature,
    ParsedLine,
    ParseResult,
    StoreGroup,
    TransactionRecord,
    TransactionType,
    TransactionTypeInfo,
)
from .parser import CnabError, CnabParseError, parse_cnab, parse_line, safe_slice
from .stores import get_store, list_stores

__all__ = [
    # API
    "parse_line",
    "parse_cnab",
    "safe_slice",
    "import_cnab",
    "import_cnab_file",
    "list_stores",
    "get_store",
    # Errors
    "CnabError",
    "CnabParseError",
    # Models / types
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
