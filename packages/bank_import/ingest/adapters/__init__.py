"""Ordered registry of delimited-text bank adapters.

Registration order is the tie-break policy: the first adapter whose
``detect`` accepts the header row wins, so more specific formats must be
listed before more generic ones that might loosely match.
"""

from __future__ import annotations

from collections.abc import Sequence

from . import ing_csv, rabo_csv
from .base import BankAdapter

ADAPTERS: tuple[BankAdapter, ...] = (
    ing_csv.ADAPTER,
    rabo_csv.ADAPTER,
)


def select_adapter(
    headers: Sequence[str],
    adapters: Sequence[BankAdapter] = ADAPTERS,
) -> BankAdapter | None:
    """Return the first adapter (in registration order) that recognizes ``headers``."""

    for adapter in adapters:
        if adapter.detect(headers):
            return adapter
    return None


__all__ = ["ADAPTERS", "BankAdapter", "select_adapter"]
