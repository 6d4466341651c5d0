"""Line scanner for ING statement text (multi-line records).

A record starts at a line with a full ``DD-MM-YYYY`` date prefix; the rest of
that line is the provisional description. The amount is either

- at the end of the same line (the last amount-shaped token; when a second
  one precedes it, both are stripped from the description), or
- on a later line consisting *only* of an amount. Lines in between are
  appended to the description. Reaching another date-prefixed line first
  abandons the record (no amount, silently dropped).

Every amount is taken as an outflow. The statement renders "Af" and "Bij" as
columns that do not survive extraction, and expenses dominate typical
statements; this default is a heuristic, not a derived fact.

``IBAN: <iban>`` inside the description fills the counterparty IBAN, and the
text between ``Naam:`` and ``Omschrijving:`` the counterparty name.
"""

from __future__ import annotations

import re

from ...errors import InvalidDateFormat
from ...fingerprint import finalize
from ...models import TransactionDraft
from ...normalizers import parse_amount_cents, parse_date
from .base import ScanResult, split_lines

DATE_PREFIX_RE = re.compile(r"^(\d{2}-\d{2}-\d{4})")
_AMOUNT_RE = re.compile(r"[\d.]+,\d{2}")
_TRAILING_AMOUNT_RE = re.compile(r"[\d.]+,\d{2}$")
_AMOUNT_ONLY_RE = re.compile(r"^[\d.]+,\d{2}$")
_IBAN_RE = re.compile(r"IBAN:\s*([A-Z]{2}\d{2}[A-Z0-9]{4,})")


def extract_counterparty_name(description: str) -> str | None:
    if "Naam:" not in description:
        return None
    name = description.split("Naam:", 1)[1].split("Omschrijving:", 1)[0].strip()
    return name or None


def extract_iban(description: str) -> str | None:
    m = _IBAN_RE.search(description)
    return re.sub(r"\s", "", m.group(1)) if m else None


def _outflow(amount_str: str) -> int:
    return -abs(parse_amount_cents(amount_str))


def scan(text: str) -> ScanResult:
    """Scan ING statement text into fingerprinted transactions."""

    result = ScanResult()
    lines = split_lines(text)

    i = 0
    while i < len(lines):
        line = lines[i]
        date_match = DATE_PREFIX_RE.match(line)
        if date_match is None:
            i += 1
            continue

        record_line_no = i + 1
        date_str = date_match.group(1)
        try:
            tx_date = parse_date(date_str, "%d-%m-%Y")
        except InvalidDateFormat:
            i += 1
            continue

        try:
            description = line[len(date_str) :].strip()
            amount_cents: int | None = None

            amounts = _AMOUNT_RE.findall(line)
            if amounts and _TRAILING_AMOUNT_RE.search(line):
                amount_str = amounts[-1]
                amount_cents = _outflow(amount_str)
                description = description.replace(amount_str, "", 1).strip()
                if len(amounts) > 1:
                    # Two trailing amounts ("Af" and "Bij" columns glued together).
                    description = description.replace(amounts[-2], "", 1).strip()

            if amount_cents is None:
                j = i + 1
                while j < len(lines):
                    nxt = lines[j]
                    if DATE_PREFIX_RE.match(nxt):
                        break
                    if _AMOUNT_ONLY_RE.match(nxt):
                        amount_cents = _outflow(nxt)
                        break
                    description = f"{description} {nxt}"
                    j += 1
                # Resume at the amount line, or just before the next record.
                i = j if amount_cents is not None else j - 1

            if amount_cents is not None:
                description = description.strip()
                result.transactions.append(
                    finalize(
                        TransactionDraft(
                            date=tx_date,
                            amount_cents=amount_cents,
                            description=description,
                            counterparty_name=extract_counterparty_name(description),
                            counterparty_iban=extract_iban(description),
                        )
                    )
                )
        except Exception as e:  # noqa: BLE001 - one bad record must not stop the scan
            result.warnings.append(f"line {record_line_no}: could not parse record: {e}")

        i += 1

    if not result.transactions:
        result.document_error = "No transactions found in ING statement."
    return result


__all__ = ["DATE_PREFIX_RE", "extract_counterparty_name", "extract_iban", "scan"]
