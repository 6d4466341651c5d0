"""Batch enrichment: classify, reconcile categories, persist.

Records are processed in fixed-size chunks, strictly one chunk after
another. Within a chunk:

1. every record is classified concurrently (bounded by the settings'
   concurrency ceiling, retried per :func:`classify_with_retry`); results are
   kept in input order;
2. labels missing from the :class:`CategoryIndex` are created once each, typed
   by the sign of the first record carrying the label, and added to the index
   so later chunks reuse them;
3. rows are inserted with conflict-ignore on ``import_hash`` and the chunk is
   committed.

A classifier failure never fails the run; persistence errors propagate.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from .categories import CategoryIndex, infer_category_type, new_labels_in_order
from .classifier import Classifier, ClassifyOutcome, classify_with_retry
from .logging_setup import get_logger
from .models import EnrichedTransaction, RawTransaction
from .persistence import create_category, insert_transactions
from .pool import bounded_map
from .settings import ImportSettings

_logger = get_logger("bank_import.enrichment")


@dataclass(slots=True)
class EnrichmentReport:
    inserted: int = 0
    duplicates: int = 0
    uncategorized: int = 0
    created_categories: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def iter_chunks(records: Sequence[RawTransaction], size: int) -> Iterator[Sequence[RawTransaction]]:
    """Yield consecutive slices of at most ``size`` records."""

    if size < 1:
        raise ValueError("chunk size must be a positive integer")
    for base in range(0, len(records), size):
        yield records[base : base + size]


def classify_chunk(
    chunk: Sequence[RawTransaction],
    classifier: Classifier,
    *,
    settings: ImportSettings,
    sleep: Callable[[float], None] = time.sleep,
) -> tuple[list[EnrichedTransaction], list[str]]:
    """Classify ``chunk`` concurrently; return enriched records (input order) and warnings."""

    gate = threading.BoundedSemaphore(settings.concurrency)

    def _classify(tx: RawTransaction) -> ClassifyOutcome:
        return classify_with_retry(
            classifier,
            tx,
            gate=gate,
            max_attempts=settings.max_attempts,
            backoff_seconds=settings.backoff_seconds,
            sleep=sleep,
        )

    outcomes = bounded_map(chunk, _classify, concurrency=settings.concurrency)

    enriched: list[EnrichedTransaction] = []
    warnings: list[str] = []
    for tx, outcome in zip(chunk, outcomes, strict=True):
        c = outcome.classification
        enriched.append(
            EnrichedTransaction(
                transaction=tx,
                category=c.category if c is not None else None,
                confidence=c.confidence if c is not None else None,
                reasoning=c.reasoning if c is not None else None,
            )
        )
        if outcome.warning:
            warnings.append(outcome.warning)
    return enriched, warnings


def reconcile_categories(
    session: Session,
    enriched: Sequence[EnrichedTransaction],
    index: CategoryIndex,
    *,
    household_id: str,
) -> list[str]:
    """Create categories for labels absent from ``index``; return the created names."""

    created: list[str] = []
    for label in new_labels_in_order((e.category for e in enriched), index):
        first = next(e for e in enriched if e.category == label)
        category_id = create_category(
            session,
            household_id=household_id,
            name=label,
            category_type=infer_category_type(first.transaction.amount_cents),
        )
        index.add(label, category_id)
        created.append(label)
    return created


def _to_row(
    e: EnrichedTransaction, *, household_id: str, account_id: str, index: CategoryIndex
) -> dict[str, Any]:
    tx = e.transaction
    confidence = (
        Decimal(str(e.confidence)).quantize(Decimal("0.01")) if e.confidence is not None else None
    )
    return {
        "household_id": household_id,
        "account_id": account_id,
        "category_id": index.get(e.category),
        "date": tx.date,
        "amount_cents": tx.amount_cents,
        "description": tx.description,
        "counterparty_name": tx.counterparty_name,
        "counterparty_iban": tx.counterparty_iban,
        "category_confidence": confidence,
        "import_hash": tx.import_hash,
    }


def enrich_and_persist(
    session: Session,
    records: Sequence[RawTransaction],
    *,
    household_id: str,
    account_id: str,
    index: CategoryIndex,
    classifier: Classifier,
    settings: ImportSettings,
    sleep: Callable[[float], None] = time.sleep,
) -> EnrichmentReport:
    """Run the chunked enrichment loop and commit each chunk.

    ``index`` is mutated in place as categories are created.
    """

    report = EnrichmentReport()
    for chunk_no, chunk in enumerate(iter_chunks(records, settings.chunk_size)):
        t0 = time.perf_counter()
        enriched, warnings = classify_chunk(chunk, classifier, settings=settings, sleep=sleep)
        report.warnings.extend(warnings)

        report.created_categories.extend(
            reconcile_categories(session, enriched, index, household_id=household_id)
        )

        rows = [
            _to_row(e, household_id=household_id, account_id=account_id, index=index)
            for e in enriched
        ]
        inserted = insert_transactions(session, rows)
        session.commit()

        report.inserted += inserted
        report.duplicates += len(rows) - inserted
        report.uncategorized += sum(1 for r in rows if r["category_id"] is None)
        _logger.info(
            "enrich:chunk_done index=%d size=%d inserted=%d duplicates=%d warnings=%d latency_ms=%.2f",
            chunk_no,
            len(chunk),
            inserted,
            len(rows) - inserted,
            len(warnings),
            (time.perf_counter() - t0) * 1000.0,
        )
    return report


__all__ = [
    "EnrichmentReport",
    "classify_chunk",
    "enrich_and_persist",
    "iter_chunks",
    "reconcile_categories",
]
