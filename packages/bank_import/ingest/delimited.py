"""Delimited-text (CSV) import pipeline.

Processing follows ``Start → HeaderSeen → adapter selection → RowStreaming →
Done``:

1. The first non-empty line is the header row. Its delimiter (``,``, ``;`` or
   tab) decides how the rest of the document is read.
2. Every registered adapter's ``detect`` is evaluated in registration order;
   the first match handles the remainder of the document. No match yields a
   single document-level error and zero transactions.
3. Rows are mapped one at a time, in input order. A row the adapter cannot
   map is skipped and recorded as a line-level warning; it never aborts the
   rest of the stream.
4. Successfully mapped rows are fingerprinted and collected in input order.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from ..fingerprint import finalize
from ..logging_setup import get_logger
from ..models import UNKNOWN_ADAPTER, ParseResult, RawTransaction
from .adapters import ADAPTERS, BankAdapter, select_adapter

UNSUPPORTED_FORMAT = "Unsupported format: no known bank export layout matches the header row."

_CANDIDATE_DELIMITERS: tuple[str, ...] = (",", ";", "\t")
# Tried in order. Dutch bank exports are UTF-8 or Windows-1252.
_TEXT_ENCODINGS: tuple[str, ...] = ("utf-8", "cp1252")

_logger = get_logger("bank_import.ingest.delimited")


@dataclass(frozen=True, slots=True)
class RowOutcome:
    """Result of mapping one data row: a transaction or a warning, never both."""

    line_no: int
    transaction: RawTransaction | None = None
    warning: str | None = None


def decode_export(data: bytes) -> str:
    """Decode an export as UTF-8, falling back to Windows-1252.

    Bytes neither encoding accepts are decoded as Latin-1, which maps every
    byte to one character; nothing is replaced or dropped.
    """

    for encoding in _TEXT_ENCODINGS:
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError:
            continue
        if encoding != _TEXT_ENCODINGS[0]:
            _logger.info("delimited:decoded encoding=%s", encoding)
        return text
    _logger.warning("delimited:decoded encoding=latin-1")
    return data.decode("latin-1")


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line
    return ""


def detect_delimiter(header_line: str) -> str:
    """Pick the candidate delimiter that occurs most often in ``header_line``."""

    counts = {d: header_line.count(d) for d in _CANDIDATE_DELIMITERS}
    best = max(_CANDIDATE_DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] > 0 else ","


def _is_blank(row: dict[str | None, str | None]) -> bool:
    for key, value in row.items():
        if key is None:
            continue
        if isinstance(value, str) and value.strip():
            return False
    return True


def iter_rows(
    reader: csv.DictReader, adapter: BankAdapter, *, line_offset: int = 0
) -> Iterator[RowOutcome]:
    """Map rows through ``adapter`` one at a time, preserving input order."""

    for row in reader:
        line_no = reader.line_num + line_offset
        if _is_blank(row):
            continue
        try:
            draft = adapter.parse_row(row)
        except ValueError as e:
            yield RowOutcome(line_no=line_no, warning=f"line {line_no}: {e}")
            continue
        if draft is None:
            yield RowOutcome(
                line_no=line_no,
                warning=f"line {line_no}: row skipped, {adapter.key} could not map it",
            )
            continue
        yield RowOutcome(line_no=line_no, transaction=finalize(draft))


def parse_delimited_export(
    text: str,
    *,
    adapters: Sequence[BankAdapter] = ADAPTERS,
) -> ParseResult:
    """Parse a delimited bank export into fingerprinted transactions.

    Parameters
    ----------
    text:
        Full document text (a leading UTF-8 BOM is ignored).
    adapters:
        Ordered adapter registry; defaults to the built-in registry.

    Returns
    -------
    ParseResult
        Transactions in input row order, line-level warnings, the key of the
        adapter used (``"UNKNOWN"`` when none matched) and, for unusable
        documents, a ``document_error``.
    """

    text = text.lstrip("\ufeff")
    header_line = _first_line(text)
    if not header_line:
        return ParseResult(transactions=[], document_error="Document is empty.")

    # Leading blank lines are dropped; keep physical line numbers for warnings.
    start = text.find(header_line)
    line_offset = text.count("\n", 0, start)
    delimiter = detect_delimiter(header_line)
    reader = csv.DictReader(io.StringIO(text[start:]), delimiter=delimiter)
    headers = [h.strip() for h in (reader.fieldnames or [])]

    adapter = select_adapter(headers, adapters)
    if adapter is None:
        _logger.warning("delimited:unsupported_format headers=%d", len(headers))
        return ParseResult(
            transactions=[],
            adapter_used=UNKNOWN_ADAPTER,
            document_error=UNSUPPORTED_FORMAT,
        )
    # Normalize header whitespace so adapters can look columns up by exact name.
    reader.fieldnames = headers

    transactions: list[RawTransaction] = []
    warnings: list[str] = []
    for outcome in iter_rows(reader, adapter, line_offset=line_offset):
        if outcome.transaction is not None:
            transactions.append(outcome.transaction)
        elif outcome.warning is not None:
            warnings.append(outcome.warning)

    _logger.info(
        "delimited:done adapter=%s transactions=%d warnings=%d",
        adapter.key,
        len(transactions),
        len(warnings),
    )
    return ParseResult(transactions=transactions, warnings=warnings, adapter_used=adapter.key)


__all__ = [
    "UNSUPPORTED_FORMAT",
    "RowOutcome",
    "decode_export",
    "detect_delimiter",
    "iter_rows",
    "parse_delimited_export",
]
