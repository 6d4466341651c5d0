"""Positional-text (PDF) import pipeline.

Text is pulled out of the page-layout document with ``pdfplumber``, which
loses every table/column boundary; the bank family is recognized from marker
phrases and the matching line scanner reconstructs the records. Any failure
while extracting text is a document-level error.
"""

from __future__ import annotations

import io

import pdfplumber

from ..logging_setup import get_logger
from ..models import UNKNOWN_ADAPTER, ParseResult
from .scanners import BankFamily, detect_family, scan_text

UNKNOWN_PDF_FORMAT = "Unknown PDF format. Supported statements: Rabobank, ING."

_logger = get_logger("bank_import.ingest.pdf")


def extract_text(data: bytes) -> str:
    """Return the text of every page joined by newlines."""

    with pdfplumber.open(io.BytesIO(data)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return "\n".join(pages)


def parse_statement_text(text: str) -> ParseResult:
    """Detect the bank family of extracted ``text`` and scan it."""

    family: BankFamily | None = detect_family(text)
    if family is None:
        return ParseResult(transactions=[], document_error=UNKNOWN_PDF_FORMAT)

    scanned = scan_text(text, family)
    _logger.info(
        "pdf:scanned family=%s transactions=%d warnings=%d",
        family,
        len(scanned.transactions),
        len(scanned.warnings),
    )
    return ParseResult(
        transactions=scanned.transactions,
        warnings=scanned.warnings,
        adapter_used=str(family),
        document_error=scanned.document_error,
    )


def parse_pdf_export(data: bytes) -> ParseResult:
    """Extract text from PDF bytes and scan it into fingerprinted transactions."""

    try:
        text = extract_text(data)
    except Exception as e:  # noqa: BLE001 - surfaced as a document-level error
        _logger.warning("pdf:extract_failed error=%s", e.__class__.__name__)
        return ParseResult(
            transactions=[],
            adapter_used=UNKNOWN_ADAPTER,
            document_error=f"PDF processing failed: {e}",
        )
    return parse_statement_text(text)


__all__ = ["UNKNOWN_PDF_FORMAT", "extract_text", "parse_pdf_export", "parse_statement_text"]
