"""Adapter for ING (NL) "Af- en bijschrijvingen" CSV exports.

Header (columns required for detection):
``Datum, Naam / Omschrijving, Rekening, Tegenrekening, Af Bij, Bedrag (EUR)``
(exports usually also carry ``Code, Mutatiesoort, Mededelingen``).

Mapping rules
-------------
- ``date``: ``Datum`` as ``yyyyMMdd``; rows with another shape are skipped
- ``amount_cents``: ``Bedrag (EUR)`` is unsigned; ``Af Bij == "Af"`` makes it
  an outflow, anything else an inflow
- ``description``: ``Mededelingen``, falling back to ``Naam / Omschrijving``
- ``counterparty_name``: ``Naam / Omschrijving``
- ``counterparty_iban``: ``Tegenrekening`` (``None`` when empty)
"""

from __future__ import annotations

from collections.abc import Sequence

from ...errors import InvalidDateFormat
from ...models import TransactionDraft
from ...normalizers import parse_amount_cents, parse_date
from .base import BankAdapter, Row, cell

KEY = "ING_NL"

REQUIRED_COLUMNS: tuple[str, ...] = (
    "Datum",
    "Naam / Omschrijving",
    "Rekening",
    "Tegenrekening",
    "Af Bij",
    "Bedrag (EUR)",
)


def detect(headers: Sequence[str]) -> bool:
    present = {h.strip() for h in headers}
    return all(col in present for col in REQUIRED_COLUMNS)


def parse_row(row: Row) -> TransactionDraft | None:
    try:
        tx_date = parse_date(cell(row, "Datum"), "%Y%m%d")
    except InvalidDateFormat:
        return None

    raw_amount = parse_amount_cents(cell(row, "Bedrag (EUR)"))
    amount_cents = -abs(raw_amount) if cell(row, "Af Bij") == "Af" else abs(raw_amount)

    name = cell(row, "Naam / Omschrijving")
    return TransactionDraft(
        date=tx_date,
        amount_cents=amount_cents,
        description=cell(row, "Mededelingen") or name,
        counterparty_name=name or None,
        counterparty_iban=cell(row, "Tegenrekening") or None,
    )


ADAPTER = BankAdapter(key=KEY, detect=detect, parse_row=parse_row)

__all__ = ["ADAPTER", "KEY", "detect", "parse_row"]
