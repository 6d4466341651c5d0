"""Error taxonomy and typed import outcomes.

Three layers are distinguished:

- value errors raised by the normalizers (``InvalidAmountFormat``,
  ``InvalidDateFormat``); callers in the parsing pipelines turn them into
  line-level warnings;
- ``TransientClassifierError`` for classifier failures worth retrying;
- the outcome types returned by :func:`bank_import.api.import_document`: an
  :class:`ImportSuccess` (possibly carrying warnings) or an
  :class:`ImportFailure` with a closed :class:`ImportFailureKind`.

A run that succeeded with warnings is an ``ImportSuccess`` with a non-empty
``warnings`` tuple; it is never collapsed into a boolean.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class InvalidAmountFormat(ValueError):
    """Raised when a currency string does not clean up to a finite number."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid amount format: {value!r}")
        self.value = value


class InvalidDateFormat(ValueError):
    """Raised when a date string does not match the expected source format."""

    def __init__(self, value: str, fmt: str) -> None:
        super().__init__(f"Invalid date {value!r} for format {fmt!r}")
        self.value = value
        self.fmt = fmt


class TransientClassifierError(RuntimeError):
    """A classifier failure that may succeed when retried (timeouts, rate limits)."""


class ImportFailureKind(StrEnum):
    UNAUTHORIZED = "UNAUTHORIZED"
    MISSING_HOUSEHOLD = "MISSING_HOUSEHOLD"
    NO_FILE = "NO_FILE"
    INVALID_FILE = "INVALID_FILE"
    PARSE_ERROR = "PARSE_ERROR"
    NO_TRANSACTIONS = "NO_TRANSACTIONS"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True, slots=True)
class ImportFailure:
    """Typed failure of a whole import run (nothing was persisted by this layer)."""

    kind: ImportFailureKind
    message: str
    details: Mapping[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class ImportSuccess:
    """Outcome of a completed run.

    ``imported_count`` counts rows newly written by this run; rows whose
    fingerprint already existed are reported in ``duplicate_count``.
    """

    imported_count: int
    duplicate_count: int = 0
    uncategorized_count: int = 0
    adapter_used: str = "UNKNOWN"
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return True


type ImportOutcome = ImportSuccess | ImportFailure


__all__ = [
    "InvalidAmountFormat",
    "InvalidDateFormat",
    "TransientClassifierError",
    "ImportFailureKind",
    "ImportFailure",
    "ImportSuccess",
    "ImportOutcome",
]
