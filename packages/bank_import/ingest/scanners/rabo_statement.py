"""Line scanner for Rabobank statement text (dense single-line records).

Page-layout extraction flattens each booking into one line shaped like::

    <DD-MM><2-letter type code><free text><amount with comma decimals>

e.g. ``17-11bcAlbert Heijn 1585 31,41``. The year is not on the line; it is
recovered once per document from the ``Datum vanaf DD-MM-YYYY`` period-start
marker.

Sign inference (best-effort heuristic, ambiguous amounts default to outflow):

- a wide whitespace gap (3+ spaces) before the amount means the amount was
  rendered in the "Bedrag bij" column → inflow;
- otherwise the amount is an outflow, whether or not the type code is in
  :data:`DEBIT_CODES`. Expenses dominate typical statements and there is no
  ground truth to justify a different default.

After a record line, up to two following lines are read: the first as the
counterparty and the second as the description, each only when it is not
itself a record line. Without a description line the free text of the record
line is used.
"""

from __future__ import annotations

import re
from datetime import date

from ...errors import InvalidDateFormat
from ...fingerprint import finalize
from ...models import TransactionDraft
from ...normalizers import parse_amount_cents, parse_date
from .base import ScanResult, split_lines

RECORD_RE = re.compile(r"^(\d{2}-\d{2})([a-z]{2})(.*?)(\d[\d.]*,\d{2})$")
_GAP_RE = re.compile(r"\s{3,}$")
_IBAN_RE = re.compile(r"(NL\d{2}\s?[A-Z]{4}\s?\d{4}\s?\d{4}\s?\d{2})")
_PERIOD_START_RE = re.compile(r"Datum vanaf\s+\d{2}-\d{2}-(\d{4})")

# Booking codes that are debits (money leaving the account):
# ba betaalautomaat, bc betaalautomaat contactloos, cb crediteurenbetaling,
# ei euro-incasso, ic incasso, gt internetbankieren, ov overschrijving,
# tb eigen rekening, ...
DEBIT_CODES: frozenset[str] = frozenset(
    {"ei", "bc", "ba", "bg", "wb", "st", "db", "cb", "tb", "ic", "gt", "ov", "ac"}
)


def infer_amount_cents(raw_cents: int, type_code: str, middle_raw: str) -> int:
    """Apply the column-gap / debit-code heuristic to an unsigned amount."""

    if _GAP_RE.search(middle_raw):
        return abs(raw_cents)
    if type_code in DEBIT_CODES:
        return -abs(raw_cents)
    # Unknown code without a gap: assume a payment.
    return -abs(raw_cents)


def find_statement_year(text: str) -> str | None:
    m = _PERIOD_START_RE.search(text)
    return m.group(1) if m else None


def _is_record(line: str) -> bool:
    return RECORD_RE.match(line) is not None


def scan(text: str, *, today: date | None = None) -> ScanResult:
    """Scan Rabobank statement text into fingerprinted transactions."""

    result = ScanResult()
    lines = split_lines(text)

    year = find_statement_year(text)
    if year is None:
        year = str((today or date.today()).year)
        result.warnings.append(
            f"No 'Datum vanaf' period marker found; assuming statement year {year}."
        )

    i = 0
    while i < len(lines):
        line = lines[i]
        match = RECORD_RE.match(line)
        if match is None:
            i += 1
            continue

        record_line_no = i + 1
        day_month, type_code, middle_raw, amount_str = match.groups()
        middle = middle_raw.strip()

        counterparty = ""
        description = ""
        if i + 1 < len(lines) and not _is_record(lines[i + 1]):
            counterparty = lines[i + 1]
            i += 1
            if i + 1 < len(lines) and not _is_record(lines[i + 1]):
                description = lines[i + 1]
                i += 1
        description = description or middle

        try:
            amount_cents = infer_amount_cents(
                parse_amount_cents(amount_str), type_code.lower(), middle_raw
            )
            iban_match = _IBAN_RE.search(middle)
            iban = re.sub(r"\s", "", iban_match.group(1)) if iban_match else None
            tx_date = parse_date(f"{day_month}-{year}", "%d-%m-%Y")
            result.transactions.append(
                finalize(
                    TransactionDraft(
                        date=tx_date,
                        amount_cents=amount_cents,
                        description=description,
                        counterparty_name=counterparty or description,
                        counterparty_iban=iban,
                    )
                )
            )
        except InvalidDateFormat:
            result.warnings.append(
                f"line {record_line_no}: invalid date {day_month}-{year}, record skipped"
            )
        except Exception as e:  # noqa: BLE001 - one bad record must not stop the scan
            result.warnings.append(f"line {record_line_no}: {e}")

        i += 1

    if not result.transactions:
        result.document_error = (
            "No transactions found in Rabobank statement; the layout may not be supported."
        )
    return result


__all__ = ["DEBIT_CODES", "RECORD_RE", "find_statement_year", "infer_amount_cents", "scan"]
