from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from cnab_import import CnabParseError, Nature, TransactionType, parse_line, safe_slice
from tests.helpers.cnab import cnab_line


def test_parse_full_line_extracts_every_field():
    parsed = parse_line(cnab_line())

    rec = parsed.record
    assert rec.transaction_type is TransactionType.FINANCIAMENTO
    assert rec.date == dt.date(2019, 3, 1)
    assert rec.amount == Decimal("142.00")
    assert rec.cpf == "09620676017"
    assert rec.card == "4753****3153"
    assert rec.time == dt.time(15, 34, 53)
    assert parsed.owner == "JOÃO MACEDO"
    assert parsed.store_name == "BAR DO JOÃO"


@pytest.mark.parametrize(
    ("code", "description", "nature", "signal"),
    [
        ("1", "Débito", Nature.ENTRADA, "+"),
        ("2", "Boleto", Nature.SAIDA, "-"),
        ("3", "Financiamento", Nature.SAIDA, "-"),
        ("4", "Crédito", Nature.ENTRADA, "+"),
        ("5", "Recebimento Empréstimo", Nature.ENTRADA, "+"),
        ("6", "Vendas", Nature.ENTRADA, "+"),
        ("7", "Recebimento TED", Nature.ENTRADA, "+"),
        ("8", "Recebimento DOC", Nature.ENTRADA, "+"),
        ("9", "Aluguel", Nature.SAIDA, "-"),
    ],
)
def test_nature_description_and_signal_follow_the_type(code, description, nature, signal):
    rec = parse_line(cnab_line(type_code=code)).record

    assert int(rec.transaction_type) == int(code)
    assert rec.description == description
    assert rec.nature == nature
    assert rec.signal == signal
    assert rec.is_entrada is (nature is Nature.ENTRADA)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("0000014200", Decimal("142.00")),
        ("0000000001", Decimal("0.01")),
        ("9999999999", Decimal("99999999.99")),
        ("0000000000", Decimal("0.00")),
    ],
)
def test_amount_is_divided_by_one_hundred(raw, expected):
    amount = parse_line(cnab_line(amount=raw)).record.amount

    assert amount == expected
    assert amount.as_tuple().exponent == -2


def test_invalid_amount_reports_raw_field():
    with pytest.raises(CnabParseError, match=r"^Invalid amount: 00000ABC00$"):
        parse_line(cnab_line(amount="00000ABC00"))


@pytest.mark.parametrize(
    "raw",
    [
        "00001E+050",
        "000001E+05",
        "1_000_0000",
        "0000000NaN",
        "0000000Inf",
        "00-0014200",
        "0000 14200",
    ],
)
def test_amount_must_be_a_plain_decimal(raw):
    with pytest.raises(CnabParseError) as excinfo:
        parse_line(cnab_line(amount=raw))

    assert str(excinfo.value) == f"Invalid amount: {raw}"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("+000014200", Decimal("142.00")),
        (" 000014200", Decimal("142.00")),
        ("0000142.50", Decimal("1.43")),
    ],
)
def test_amount_accepts_sign_padding_and_fraction(raw, expected):
    assert parse_line(cnab_line(amount=raw)).record.amount == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("000000", dt.time(0, 0, 0)),
        ("235959", dt.time(23, 59, 59)),
        ("120005", dt.time(12, 0, 5)),
    ],
)
def test_time_boundaries_are_accepted(raw, expected):
    assert parse_line(cnab_line(time=raw)).record.time == expected


@pytest.mark.parametrize(
    ("raw", "component", "valid_range", "found"),
    [
        ("250000", "hour", "0-23", 25),
        ("240000", "hour", "0-23", 24),
        ("166045", "minute", "0-59", 60),
        ("123460", "second", "0-59", 60),
    ],
)
def test_time_out_of_range_names_component(raw, component, valid_range, found):
    with pytest.raises(CnabParseError) as excinfo:
        parse_line(cnab_line(time=raw))

    assert str(excinfo.value) == (
        f"Invalid time: {raw} ({component} must be between {valid_range}, found: {found})"
    )


def test_non_numeric_time_is_invalid_without_range_detail():
    with pytest.raises(CnabParseError) as excinfo:
        parse_line(cnab_line(time="XX3453"))

    assert str(excinfo.value) == "Invalid time: XX3453"


@pytest.mark.parametrize("raw", ["20190230", "20191301", "2019 301", "ABCDEFGH"])
def test_invalid_date_reports_raw_field(raw):
    with pytest.raises(CnabParseError) as excinfo:
        parse_line(cnab_line(date=raw))

    assert str(excinfo.value) == f"Invalid date: {raw}"


@pytest.mark.parametrize("first_char", ["0", "A", " ", "-"])
def test_unknown_transaction_type_is_rejected(first_char):
    with pytest.raises(CnabParseError, match=r"^Invalid transaction type: 0$"):
        parse_line(cnab_line(type_code=first_char))


def test_validation_stops_at_first_failing_field():
    # type, date and time are all bad; only the type is reported
    line = cnab_line(type_code="0", date="2019XX01", time="996060")
    with pytest.raises(CnabParseError, match="Invalid transaction type"):
        parse_line(line)

    # date and amount are bad; date comes first
    line = cnab_line(date="2019XX01", amount="ABCDEFGHIJ")
    with pytest.raises(CnabParseError, match="Invalid date"):
        parse_line(line)

    # amount and time are bad; amount comes first
    line = cnab_line(amount="ABCDEFGHIJ", time="996060")
    with pytest.raises(CnabParseError, match="Invalid amount"):
        parse_line(line)


def test_line_shorter_than_48_characters_is_rejected():
    line = cnab_line()[:47]

    with pytest.raises(CnabParseError) as excinfo:
        parse_line(line)

    assert str(excinfo.value) == "Line too short: must have at least 48 characters (found: 47)"


def test_trailing_whitespace_does_not_count_towards_length():
    line = cnab_line()[:40] + " " * 20

    with pytest.raises(CnabParseError, match=r"Line too short.*\(found: 40\)"):
        parse_line(line)


def test_minimum_length_line_has_empty_owner_and_store():
    line = cnab_line()[:48]
    assert len(line) == 48

    parsed = parse_line(line)

    assert parsed.owner == ""
    assert parsed.store_name == ""
    assert parsed.record.amount == Decimal("142.00")


def test_line_shorter_than_63_reads_owner_to_end_and_drops_store():
    line = cnab_line()[:48] + "OWNER        X"  # 62 characters
    assert len(line) == 62

    parsed = parse_line(line)

    assert parsed.owner == "OWNER        X"
    assert parsed.store_name == ""


def test_line_of_63_characters_splits_owner_and_store():
    line = cnab_line()[:48] + "OWNER NAME    S"
    assert len(line) == 63

    parsed = parse_line(line)

    assert parsed.owner == "OWNER NAME"
    assert parsed.store_name == "S"


def test_content_past_81_characters_becomes_part_of_store_name():
    line = cnab_line() + "EXTRA"
    assert len(line) == 86

    parsed = parse_line(line)

    assert parsed.store_name == "BAR DO JOÃO" + " " * 8 + "EXTRA"


def test_line_endings_are_ignored():
    assert parse_line(cnab_line() + "\r\n") == parse_line(cnab_line())


@pytest.mark.parametrize(
    ("text", "start", "end", "expected"),
    [
        ("abcdef", 0, 1, "ab"),
        ("abcdef", 2, 2, "c"),
        ("abcdef", 3, 99, "def"),
        ("abcdef", 6, 9, ""),
        ("abcdef", -1, 3, ""),
        ("abcdef", 4, 3, ""),
        ("", 0, 0, ""),
    ],
)
def test_safe_slice_never_raises(text, start, end, expected):
    assert safe_slice(text, start, end) == expected
