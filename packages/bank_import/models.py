"""Data models for ``bank_import``.

Record lifecycle
----------------
An adapter or scanner produces a :class:`TransactionDraft` (no fingerprint
yet); :func:`bank_import.fingerprint.finalize` turns it into an immutable
:class:`RawTransaction`. The enrichment orchestrator pairs each raw record
with an optional classifier decision as an :class:`EnrichedTransaction` and
hands it to persistence, where the fingerprint decides between insert and
silent discard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

# Closed label set the classifier may answer with.
CATEGORY_LABELS: tuple[str, ...] = (
    "Boodschappen",
    "Huur/Hypotheek",
    "Energie",
    "Water",
    "Verzekeringen",
    "Internet/TV",
    "Mobiel",
    "Vervoer",
    "Uitgaan",
    "Kleding",
    "Persoonlijke verzorging",
    "Huishouden",
    "Cadeaus",
    "Goede doelen",
    "Sparen",
    "Overige",
    "Salaris",
    "Toeslagen",
    "Teruggave",
)

UNKNOWN_ADAPTER = "UNKNOWN"

type CategoryType = Literal["INCOME", "EXPENSE"]


# ---------------------------------------------------------------------------
# Parsed records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionDraft:
    """A normalized transaction before fingerprinting.

    ``amount_cents`` is signed: positive for inflow, negative for outflow.
    """

    date: date
    amount_cents: int
    description: str
    counterparty_name: str | None = None
    counterparty_iban: str | None = None


@dataclass(frozen=True, slots=True)
class RawTransaction:
    """A normalized, fingerprinted transaction.

    ``import_hash`` is identical for two records that represent the same bank
    line, whether re-parsed from the same export or an overlapping one.
    """

    date: date
    amount_cents: int
    description: str
    counterparty_name: str | None
    counterparty_iban: str | None
    import_hash: str


@dataclass(frozen=True, slots=True)
class EnrichedTransaction:
    """A raw transaction plus the (optional) classifier decision.

    Missing ``category`` is a valid outcome (classifier unavailable, failed, or
    undecided), not an error.
    """

    transaction: RawTransaction
    category: str | None = None
    confidence: float | None = None
    reasoning: str | None = None


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Output of one parsing pipeline over one document.

    ``warnings`` holds line/record-level problems in input order.
    ``document_error`` is set when the document as a whole was unusable, or
    when scanning yielded no transactions.
    """

    transactions: list[RawTransaction]
    warnings: list[str] = field(default_factory=list)
    adapter_used: str = UNKNOWN_ADAPTER
    document_error: str | None = None


# ---------------------------------------------------------------------------
# Classifier decision (validated model output)
# ---------------------------------------------------------------------------


class Classification(BaseModel):
    """Typed, validated classifier answer for one transaction."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    category: str
    confidence: float
    reasoning: str

    @field_validator("category")
    @classmethod
    def _category_in_label_set(cls, v: str) -> str:
        if v not in CATEGORY_LABELS:
            raise ValueError(f"category {v!r} is not one of the known labels")
        return v

    @field_validator("confidence")
    @classmethod
    def _confidence_in_unit_interval(cls, v: float) -> float:
        fv = float(v)
        if 0.0 <= fv <= 1.0:
            return fv
        raise ValueError("confidence must be within [0,1]")

    @field_validator("reasoning")
    @classmethod
    def _reasoning_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reasoning must be non-empty")
        return v


__all__ = [
    "CATEGORY_LABELS",
    "UNKNOWN_ADAPTER",
    "CategoryType",
    "TransactionDraft",
    "RawTransaction",
    "EnrichedTransaction",
    "ParseResult",
    "Classification",
]
