"""Adapter for Rabobank (NL) CSV exports.

Detection keys on the ``IBAN/BBAN`` and ``Volgnr`` columns, which only the
Rabobank export combines.

Mapping rules
-------------
- ``date``: ``Datum`` as ``yyyy-MM-dd``; some user export settings produce
  ``dd-MM-yyyy`` instead, which is accepted as a fallback
- ``amount_cents``: ``Bedrag`` already carries its sign (``-12,50``/``+3,00``)
- ``description``: ``Omschrijving-1`` and ``Omschrijving-2`` joined by a space
- ``counterparty_name`` / ``counterparty_iban``: ``Naam tegenpartij`` /
  ``Tegenrekening IBAN/BBAN``
"""

from __future__ import annotations

from collections.abc import Sequence

from ...errors import InvalidDateFormat
from ...models import TransactionDraft
from ...normalizers import parse_amount_cents, parse_date_any
from .base import BankAdapter, Row, cell

KEY = "RABO_NL"

_DATE_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%d-%m-%Y")


def detect(headers: Sequence[str]) -> bool:
    present = {h.strip() for h in headers}
    return "IBAN/BBAN" in present and "Volgnr" in present


def parse_row(row: Row) -> TransactionDraft | None:
    try:
        tx_date = parse_date_any(cell(row, "Datum"), _DATE_FORMATS)
    except InvalidDateFormat:
        return None

    description = f"{cell(row, 'Omschrijving-1')} {cell(row, 'Omschrijving-2')}".strip()
    return TransactionDraft(
        date=tx_date,
        amount_cents=parse_amount_cents(cell(row, "Bedrag")),
        description=description,
        counterparty_name=cell(row, "Naam tegenpartij") or None,
        counterparty_iban=cell(row, "Tegenrekening IBAN/BBAN") or None,
    )


ADAPTER = BankAdapter(key=KEY, detect=detect, parse_row=parse_row)

__all__ = ["ADAPTER", "KEY", "detect", "parse_row"]
