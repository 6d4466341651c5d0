"""Shared contract for delimited-text bank adapters.

An adapter is a stateless pair of functions bundled with a unique key:

- ``detect(headers)``: does this header row belong to the adapter's format?
- ``parse_row(row)``: map one ``csv.DictReader`` row to a
  :class:`~bank_import.models.TransactionDraft`, or return ``None`` when the
  row cannot be mapped (the pipeline records a line-level warning). Raising
  ``ValueError`` (e.g. ``InvalidAmountFormat``) has the same effect, with the
  exception message carried into the warning.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from ...models import TransactionDraft

type Row = Mapping[str, str | None]


@dataclass(frozen=True, slots=True)
class BankAdapter:
    key: str
    detect: Callable[[Sequence[str]], bool]
    parse_row: Callable[[Row], TransactionDraft | None]

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"BankAdapter({self.key})"


def cell(row: Row, name: str) -> str:
    """Return a stripped cell value, treating missing columns as empty."""

    value = row.get(name)
    return value.strip() if isinstance(value, str) else ""


__all__ = ["BankAdapter", "Row", "cell"]
