"""Transaction fingerprints (the idempotency key for persistence).

The fingerprint is a SHA-256 over ``date_amount_iban_description`` where

- ``date`` is the transaction date as an ISO-8601 instant at UTC midnight
  (``2025-11-17T00:00:00.000Z``);
- ``amount`` is the signed integer amount in minor units;
- ``iban`` is the counterparty IBAN, or an empty string when unknown;
- ``description`` is the raw description exactly as parsed.

Field order and separator are part of the persisted contract: changing either
makes every previously imported row look new.
"""

from __future__ import annotations

import hashlib
from datetime import UTC, date, datetime

from .models import RawTransaction, TransactionDraft

_SEPARATOR = "_"


def _iso_instant(d: date) -> str:
    instant = datetime(d.year, d.month, d.day, tzinfo=UTC)
    return instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def compute_fingerprint(
    *,
    tx_date: date,
    amount_cents: int,
    counterparty_iban: str | None,
    description: str,
) -> str:
    """Return the lowercase hex SHA-256 fingerprint of one logical transaction."""

    payload = _SEPARATOR.join(
        (
            _iso_instant(tx_date),
            str(int(amount_cents)),
            counterparty_iban or "",
            description,
        )
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def finalize(draft: TransactionDraft) -> RawTransaction:
    """Attach the fingerprint to ``draft`` and freeze it as a :class:`RawTransaction`."""

    return RawTransaction(
        date=draft.date,
        amount_cents=draft.amount_cents,
        description=draft.description,
        counterparty_name=draft.counterparty_name,
        counterparty_iban=draft.counterparty_iban,
        import_hash=compute_fingerprint(
            tx_date=draft.date,
            amount_cents=draft.amount_cents,
            counterparty_iban=draft.counterparty_iban,
            description=draft.description,
        ),
    )


__all__ = ["compute_fingerprint", "finalize"]
