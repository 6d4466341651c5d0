"""Common result shape for positional-text scanners."""

from __future__ import annotations

from dataclasses import dataclass, field

from ...models import RawTransaction


@dataclass(slots=True)
class ScanResult:
    """Records and warnings accumulated while scanning one document."""

    transactions: list[RawTransaction] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    document_error: str | None = None


def split_lines(text: str) -> list[str]:
    """Split extracted text into stripped, non-empty lines."""

    return [line.strip() for line in text.splitlines() if line.strip()]


__all__ = ["ScanResult", "split_lines"]
