"""Fixed-width CNAB parser.

Line layout (0-based, inclusive character positions after trailing whitespace
is stripped):

====================  =========  ==========================================
Field                 Positions  Notes
====================  =========  ==========================================
transaction type      0          ASCII digit 1-9
date                  1-8        ``yyyyMMdd``
amount                9-18       plain signed decimal in cents (no exponent);
                                 value is divided by 100
CPF                   19-29      trimmed
card                  30-41      masked card number, trimmed
time                  42-47      ``HHMMSS``
owner                 48-61      trimmed; runs to end of line when the line
                                 is shorter than 63 characters
store name            62-end     trimmed; empty when the line is shorter
                                 than 63 characters
====================  =========  ==========================================

``parse_line`` raises :class:`CnabParseError` on the first field that fails
validation (type, date, amount, time, in that order). ``parse_cnab`` runs it
over every line of a stream and collects every error instead of stopping.
"""

from __future__ import annotations

import datetime as dt
import io
import re
from collections.abc import Iterator
from decimal import ROUND_HALF_UP, Decimal
from typing import IO

from .logging_setup import get_logger
from .models import (
    TRANSACTION_TYPES,
    ParsedLine,
    ParseResult,
    StoreGroup,
    TransactionRecord,
    TransactionType,
)

logger = get_logger("cnab_import.parser")

TRANSACTION_TYPE_INDEX = 0
DATE_SLICE = (1, 8)
AMOUNT_SLICE = (9, 18)
CPF_SLICE = (19, 29)
CARD_SLICE = (30, 41)
TIME_SLICE = (42, 47)
OWNER_START = 48
OWNER_END = 61
STORE_START = 62

MIN_LINE_LENGTH = 48
MIN_LINE_LENGTH_FOR_STORE_NAME = 63
TIME_LENGTH = 6

# Amounts are stored in cents.
AMOUNT_DIVISOR = Decimal(100)
_CENTS = Decimal("0.01")
# Plain optionally signed decimal; no exponent, no digit separators.
_AMOUNT_RE = re.compile(r"\s*[+-]?\d+(?:\.\d+)?\s*", re.ASCII)

_TIME_COMPONENTS = (
    # name, slice start, min, max
    ("hour", 0, 0, 23),
    ("minute", 2, 0, 59),
    ("second", 4, 0, 59),
)


class CnabError(Exception):
    """Base class for errors raised by ``cnab_import``."""


class CnabParseError(CnabError, ValueError):
    """A single line failed validation; the message is user-facing."""


def safe_slice(text: str, start: int, end: int) -> str:
    """Return ``text[start..end]`` (inclusive), or ``""`` when out of range.

    Never raises: an empty string, a negative or past-the-end ``start`` and an
    ``end`` before ``start`` all give ``""``; an ``end`` past the last
    character is clamped.
    """

    if not text or start < 0 or start >= len(text) or end < start:
        return ""
    end = min(end, len(text) - 1)
    return text[start : end + 1]


def _parse_transaction_type(line: str) -> TransactionType:
    ch = line[TRANSACTION_TYPE_INDEX]
    code = int(ch) if ch.isascii() and ch.isdigit() else 0
    if code not in TRANSACTION_TYPES:
        raise CnabParseError(f"Invalid transaction type: {code}")
    return TransactionType(code)


def _parse_date(raw: str) -> dt.date:
    # strptime alone accepts single-digit months/days; require all 8 digits.
    if len(raw) != 8 or not (raw.isascii() and raw.isdigit()):
        raise CnabParseError(f"Invalid date: {raw}")
    try:
        return dt.datetime.strptime(raw, "%Y%m%d").date()
    except ValueError:
        raise CnabParseError(f"Invalid date: {raw}") from None


def _parse_amount(raw: str) -> Decimal:
    if not _AMOUNT_RE.fullmatch(raw):
        raise CnabParseError(f"Invalid amount: {raw}")
    try:
        return (Decimal(raw.strip()) / AMOUNT_DIVISOR).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except ArithmeticError:
        raise CnabParseError(f"Invalid amount: {raw}") from None


def _parse_time(raw: str) -> dt.time:
    if len(raw) < TIME_LENGTH:
        raise CnabParseError(f"Invalid time: {raw}")

    values: list[int] = []
    for _name, start, _lo, _hi in _TIME_COMPONENTS:
        try:
            values.append(int(raw[start : start + 2]))
        except ValueError:
            raise CnabParseError(f"Invalid time: {raw}") from None

    for (name, _start, lo, hi), value in zip(_TIME_COMPONENTS, values, strict=True):
        if not lo <= value <= hi:
            raise CnabParseError(
                f"Invalid time: {raw} ({name} must be between {lo}-{hi}, found: {value})"
            )

    hour, minute, second = values
    return dt.time(hour, minute, second)


def _split_owner_and_store(line: str) -> tuple[str, str]:
    last = len(line) - 1
    if len(line) < MIN_LINE_LENGTH_FOR_STORE_NAME:
        return safe_slice(line, OWNER_START, last).strip(), ""
    owner = safe_slice(line, OWNER_START, min(OWNER_END, last)).strip()
    store_name = safe_slice(line, STORE_START, last).strip()
    return owner, store_name


def parse_line(line: str) -> ParsedLine:
    """Parse one CNAB line.

    Raises
    ------
    CnabParseError
        On the first failing rule: line length, then transaction type, date,
        amount and time.
    """

    line = line.rstrip()
    if len(line) < MIN_LINE_LENGTH:
        raise CnabParseError(
            f"Line too short: must have at least {MIN_LINE_LENGTH} characters "
            f"(found: {len(line)})"
        )

    date_raw = safe_slice(line, *DATE_SLICE)
    amount_raw = safe_slice(line, *AMOUNT_SLICE)
    cpf = safe_slice(line, *CPF_SLICE).strip()
    card = safe_slice(line, *CARD_SLICE).strip()
    time_raw = safe_slice(line, *TIME_SLICE)
    owner, store_name = _split_owner_and_store(line)

    transaction_type = _parse_transaction_type(line)
    date = _parse_date(date_raw)
    amount = _parse_amount(amount_raw)
    time = _parse_time(time_raw)

    record = TransactionRecord(
        transaction_type=transaction_type,
        date=date,
        amount=amount,
        cpf=cpf,
        card=card,
        time=time,
    )
    return ParsedLine(record=record, store_name=store_name, owner=owner)


def _iter_lines(stream: IO[str] | IO[bytes]) -> Iterator[str]:
    """Yield text lines from a text or binary stream without closing it."""

    # read(0) consumes nothing and tells text and binary streams apart, including
    # text-mode objects that do not subclass TextIOBase.
    if isinstance(stream.read(0), str):
        yield from stream
        return

    # utf-8-sig drops a leading BOM; undecodable bytes become U+FFFD.
    reader = io.TextIOWrapper(stream, encoding="utf-8-sig", errors="replace", newline=None)  # type: ignore[arg-type]
    try:
        yield from reader
    finally:
        reader.detach()


def parse_cnab(stream: IO[str] | IO[bytes]) -> ParseResult:
    """Parse a whole CNAB file into store groups and per-line errors.

    Blank lines are skipped but still counted, so error line numbers match the
    file. Every non-blank line is attempted; errors read ``"Line N: ..."`` in
    ascending order.
    """

    result = ParseResult()

    for line_number, raw in enumerate(_iter_lines(stream), start=1):
        line = raw.rstrip()
        if not line:
            continue

        try:
            parsed = parse_line(line)
        except CnabParseError as e:
            result.errors.append(f"Line {line_number}: {e}")
            continue

        group = result.stores.get(parsed.store_name)
        if group is None:
            group = StoreGroup(name=parsed.store_name, owner=parsed.owner)
            result.stores[parsed.store_name] = group
        group.transactions.append(parsed.record)

    logger.debug(
        "Parsed CNAB stream: %d store(s), %d transaction(s), %d error(s)",
        len(result.stores),
        result.transaction_count,
        len(result.errors),
    )
    return result


__all__ = [
    "CnabError",
    "CnabParseError",
    "safe_slice",
    "parse_line",
    "parse_cnab",
]
