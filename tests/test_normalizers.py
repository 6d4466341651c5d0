from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from bank_import.errors import InvalidAmountFormat, InvalidDateFormat
from bank_import.normalizers import (
    cents_to_decimal,
    clean_text,
    format_cents,
    parse_amount_cents,
    parse_date,
    parse_date_any,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1.234,56", 123456),
        ("1234.56", 123456),
        ("19,00", 1900),
        ("€ 12,50", 1250),
        ("  -12,50 ", -1250),
        ("+3,00", 300),
        ("1.234.567,89", 123456789),
        ("42", 4200),
        ("0,005", 1),  # half-up at the cent boundary
        ("0.1", 10),
    ],
)
def test_parse_amount_cents_locales(raw: str, expected: int) -> None:
    assert parse_amount_cents(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", "   ", None, "12,3x", "NaN", "Infinity", "€"])
def test_parse_amount_cents_rejects_non_numeric(raw: str | None) -> None:
    with pytest.raises(InvalidAmountFormat) as ei:
        parse_amount_cents(raw)
    # Still a ValueError so row-level callers can catch it generically.
    assert isinstance(ei.value, ValueError)


def test_parse_amount_avoids_binary_float_error() -> None:
    # 0.29 * 100 == 28.999999999999996 in binary floating point.
    assert parse_amount_cents("0,29") == 29
    assert parse_amount_cents("1,15") == 115


def test_parse_date_explicit_formats() -> None:
    assert parse_date("20251117", "%Y%m%d") == date(2025, 11, 17)
    assert parse_date(" 17-11-2025 ", "%d-%m-%Y") == date(2025, 11, 17)


def test_parse_date_mismatch_raises_invalid_date_format() -> None:
    with pytest.raises(InvalidDateFormat) as ei:
        parse_date("2025-11-17", "%Y%m%d")
    assert ei.value.value == "2025-11-17"
    assert ei.value.fmt == "%Y%m%d"

    with pytest.raises(InvalidDateFormat):
        parse_date("20251332", "%Y%m%d")


def test_parse_date_any_tries_formats_in_order() -> None:
    formats = ("%Y-%m-%d", "%d-%m-%Y")
    assert parse_date_any("2025-01-02", formats) == date(2025, 1, 2)
    assert parse_date_any("02-01-2025", formats) == date(2025, 1, 2)
    with pytest.raises(InvalidDateFormat):
        parse_date_any("2025/01/02", formats)


def test_cents_helpers() -> None:
    assert cents_to_decimal(-1250) == Decimal("-12.50")
    assert format_cents(-123456) == "€ -1.234,56"
    assert format_cents(0) == "€ 0,00"
    assert format_cents(100000000, symbol="EUR") == "EUR 1.000.000,00"


def test_clean_text() -> None:
    assert clean_text("  Albert   Heijn \t 1585 ") == "Albert Heijn 1585"
    assert clean_text("   ") is None
    assert clean_text(None) is None
