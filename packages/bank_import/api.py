"""Public API for bank_import.

Public entry points:
    - :func:`parse_document` (no side effects; detect and parse only)
    - :func:`import_document` (full run: checks, parse, enrich, persist)

``import_document`` returns an :class:`ImportSuccess` or an
:class:`ImportFailure`; it does not raise for any of the failure kinds in
:class:`ImportFailureKind`.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from db.client import get_session

from .classifier import Classifier, OpenAIClassifier
from .enrichment import enrich_and_persist
from .errors import ImportFailure, ImportFailureKind, ImportOutcome, ImportSuccess
from .ingest import decode_export, is_pdf_document, parse_delimited_export, parse_pdf_export
from .ingest.signature import validate_file_signature
from .logging_setup import get_logger
from .models import UNKNOWN_ADAPTER, ParseResult
from .persistence import get_or_create_default_account, household_exists, load_category_index
from .settings import ImportSettings

_logger = get_logger("bank_import.api")


def parse_document(
    data: bytes,
    *,
    media_type: str | None = None,
    filename: str | None = None,
) -> ParseResult:
    """Dispatch ``data`` to the PDF or delimited-text pipeline by its declared kind."""

    if is_pdf_document(media_type, filename):
        return parse_pdf_export(data)
    return parse_delimited_export(decode_export(data))


def _failure(
    kind: ImportFailureKind, message: str, details: dict[str, Any] | None = None
) -> ImportFailure:
    _logger.info("import:failed kind=%s", kind)
    return ImportFailure(kind=kind, message=message, details=details)


def import_document(
    data: bytes | None,
    *,
    household_id: str | None,
    actor_id: str | None,
    media_type: str | None = None,
    filename: str | None = None,
    database_url: str | None = None,
    classifier: Classifier | None = None,
    settings: ImportSettings | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ImportOutcome:
    """Import one bank-export document for ``household_id``.

    Parameters
    ----------
    data:
        Raw document bytes.
    household_id:
        Target household; must exist in storage.
    actor_id:
        Identity of the authenticated caller; ``None`` means unauthenticated.
    media_type, filename:
        Declared kind of the document. ``application/pdf`` or a ``.pdf`` name
        selects the positional-text pipeline; anything else is delimited text.
    database_url:
        Overrides ``DATABASE_URL``.
    classifier:
        Classifier to use; defaults to :class:`OpenAIClassifier` configured
        from ``settings``.
    settings:
        Run tunables; defaults to :meth:`ImportSettings.from_env`.
    """

    if not actor_id:
        return _failure(ImportFailureKind.UNAUTHORIZED, "Unauthorized")
    if not household_id:
        return _failure(ImportFailureKind.MISSING_HOUSEHOLD, "Household ID required")
    if not data:
        return _failure(ImportFailureKind.NO_FILE, "No file provided")

    as_pdf = is_pdf_document(media_type, filename)
    if not validate_file_signature(data, as_pdf=as_pdf):
        return _failure(
            ImportFailureKind.INVALID_FILE,
            "File content does not match its declared type",
            {"declared": "pdf" if as_pdf else "text", "filename": filename},
        )

    try:
        settings = settings or ImportSettings.from_env()
        classifier = classifier or OpenAIClassifier(model=settings.model)

        session = get_session(database_url=database_url)
        try:
            if not household_exists(session, household_id):
                return _failure(
                    ImportFailureKind.MISSING_HOUSEHOLD,
                    f"Household {household_id} does not exist",
                )

            parsed = parse_document(data, media_type=media_type, filename=filename)
            _logger.info(
                "import:start household=%s adapter=%s transactions=%d warnings=%d",
                household_id,
                parsed.adapter_used,
                len(parsed.transactions),
                len(parsed.warnings),
            )
            if not parsed.transactions:
                details = {"adapter_used": parsed.adapter_used, "warnings": list(parsed.warnings)}
                if parsed.adapter_used == UNKNOWN_ADAPTER and parsed.document_error:
                    return _failure(ImportFailureKind.PARSE_ERROR, parsed.document_error, details)
                return _failure(
                    ImportFailureKind.NO_TRANSACTIONS,
                    parsed.document_error or "No transactions found",
                    details,
                )

            account_id = get_or_create_default_account(session, household_id)
            index = load_category_index(session, household_id)
            session.commit()

            report = enrich_and_persist(
                session,
                parsed.transactions,
                household_id=household_id,
                account_id=account_id,
                index=index,
                classifier=classifier,
                settings=settings,
                sleep=sleep,
            )
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
    except Exception as e:  # noqa: BLE001 - surfaced as a typed failure
        _logger.exception("import:internal_error household=%s", household_id)
        return _failure(
            ImportFailureKind.INTERNAL_ERROR,
            f"Import failed: {e}",
            {"error": e.__class__.__name__},
        )

    _logger.info(
        "import:done household=%s adapter=%s inserted=%d duplicates=%d uncategorized=%d",
        household_id,
        parsed.adapter_used,
        report.inserted,
        report.duplicates,
        report.uncategorized,
    )
    return ImportSuccess(
        imported_count=report.inserted,
        duplicate_count=report.duplicates,
        uncategorized_count=report.uncategorized,
        adapter_used=parsed.adapter_used,
        warnings=tuple(parsed.warnings) + tuple(report.warnings),
    )


__all__ = ["import_document", "parse_document"]
