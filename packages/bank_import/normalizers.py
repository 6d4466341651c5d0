"""Amount and date normalization shared by every parsing pipeline.

Amounts are converted to signed integer minor units (cents). Bank exports use
either ``,`` or ``.`` as decimal separator, so the separator is decided from
the characters present:

- both ``.`` and ``,``: ``.`` is a thousands separator and ``,`` the decimal
  separator (``"1.234,56"`` → ``123456``);
- only ``,``: it is the decimal separator (``"19,00"`` → ``1900``);
- otherwise the string is parsed as-is (``"1234.56"`` → ``123456``).

Parsing goes through :class:`decimal.Decimal`, so no binary floating-point
error can leak into the cent value.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .errors import InvalidAmountFormat, InvalidDateFormat

_STRIP_RE = re.compile(r"[€$£\s]")
_CENT = Decimal("0.01")


def parse_amount_cents(value: str | None) -> int:
    """Convert a locale-formatted currency string to signed minor units.

    Raises
    ------
    InvalidAmountFormat
        When the cleaned string is empty, not numeric, or not finite.
    """

    raw = "" if value is None else str(value)
    clean = _STRIP_RE.sub("", raw)

    if "." in clean and "," in clean:
        clean = clean.replace(".", "").replace(",", ".", 1)
    elif "," in clean:
        clean = clean.replace(",", ".", 1)

    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise InvalidAmountFormat(raw) from exc
    if not amount.is_finite():
        raise InvalidAmountFormat(raw)

    cents = (amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def parse_date(value: str | None, fmt: str) -> date:
    """Parse ``value`` with an explicit ``strptime`` format (e.g. ``"%Y%m%d"``).

    Raises ``InvalidDateFormat`` when the value does not match; callers treat
    that as a skipped row, never as a fatal error.
    """

    s = (value or "").strip()
    try:
        return datetime.strptime(s, fmt).date()
    except ValueError as exc:
        raise InvalidDateFormat(s, fmt) from exc


def parse_date_any(value: str | None, formats: tuple[str, ...]) -> date:
    """Try each format in order and return the first match."""

    for fmt in formats:
        try:
            return parse_date(value, fmt)
        except InvalidDateFormat:
            continue
    raise InvalidDateFormat((value or "").strip(), " | ".join(formats))


def cents_to_decimal(cents: int) -> Decimal:
    """Return the major-unit value of ``cents`` (``-1250`` → ``Decimal("-12.50")``)."""

    return (Decimal(cents) / 100).quantize(_CENT)


def format_cents(cents: int, *, symbol: str = "€") -> str:
    """Render minor units in Dutch notation, e.g. ``-123456`` → ``"€ -1.234,56"``."""

    value = cents_to_decimal(cents)
    sign = "-" if value < 0 else ""
    # Format with US separators, then swap them.
    us = f"{abs(value):,.2f}"
    nl = us.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{symbol} {sign}{nl}"


def clean_text(value: str | None) -> str | None:
    """Collapse whitespace and map empty strings to ``None``."""

    if value is None:
        return None
    cleaned = " ".join(value.split())
    return cleaned if cleaned else None


__all__ = [
    "parse_amount_cents",
    "parse_date",
    "parse_date_any",
    "cents_to_decimal",
    "format_cents",
    "clean_text",
]
