"""Per-bank heuristic scanners for positional (page-layout) statement text.

Each bank family has its own ``scan(text) -> ScanResult``; dispatch is a
lookup by :class:`BankFamily`, so one family's heuristics can be tuned
without touching the others or the orchestrator.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum

from . import ing_statement, rabo_statement
from .base import ScanResult, split_lines


class BankFamily(StrEnum):
    # Dense single-line records with a two-letter booking code.
    RABO_PDF = "RABO_PDF"
    # Multi-line records, amount on its own line.
    ING_PDF = "ING_PDF"


SCANNERS: dict[BankFamily, Callable[[str], ScanResult]] = {
    BankFamily.RABO_PDF: rabo_statement.scan,
    BankFamily.ING_PDF: ing_statement.scan,
}

# Checked in order; the first family with any marker present wins.
_MARKERS: tuple[tuple[BankFamily, tuple[str, ...]], ...] = (
    (BankFamily.RABO_PDF, ("Rabobank", "Rekeningafschrift")),
    (BankFamily.ING_PDF, ("ING Bank N.V.", "Af- en bijschrijvingen", "Bij- en afschrijvingen")),
)


def detect_family(text: str) -> BankFamily | None:
    for family, markers in _MARKERS:
        if any(marker in text for marker in markers):
            return family
    return None


def scan_text(text: str, family: BankFamily) -> ScanResult:
    return SCANNERS[family](text)


__all__ = [
    "BankFamily",
    "SCANNERS",
    "ScanResult",
    "detect_family",
    "scan_text",
    "split_lines",
]
