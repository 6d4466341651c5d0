"""In-memory category index for one import run.

Names are matched case-insensitively. The index is built once from storage
(household-scoped plus the shared default set), then only grows as the run
creates categories; it is never re-read mid-run and never shared between runs.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import CategoryType


def _key(name: str) -> str:
    return name.strip().lower()


class CategoryIndex:
    """Mapping of lower-cased category name to persisted category id."""

    __slots__ = ("_ids",)

    def __init__(self, entries: Iterable[tuple[str, str]] = ()) -> None:
        self._ids: dict[str, str] = {}
        for name, category_id in entries:
            # Household-scoped rows come first when loaded; keep the first id per name.
            self._ids.setdefault(_key(name), category_id)

    def get(self, name: str | None) -> str | None:
        if not name:
            return None
        return self._ids.get(_key(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _key(name) in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, name: str, category_id: str) -> None:
        self._ids[_key(name)] = category_id


def infer_category_type(first_amount_cents: int) -> CategoryType:
    """Income for a positive first observation, expense otherwise (zero included)."""

    return "INCOME" if first_amount_cents > 0 else "EXPENSE"


def new_labels_in_order(labels: Iterable[str | None], index: CategoryIndex) -> list[str]:
    """Labels absent from ``index``, de-duplicated case-insensitively, first-seen order."""

    seen: set[str] = set()
    out: list[str] = []
    for label in labels:
        if not label or label in index:
            continue
        k = _key(label)
        if k in seen:
            continue
        seen.add(k)
        out.append(label)
    return out


__all__ = ["CategoryIndex", "infer_category_type", "new_labels_in_order"]
