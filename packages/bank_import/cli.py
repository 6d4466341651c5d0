# ruff: noqa: I001
"""CLI for the ``bank_import`` package.

Typer-based console interface. Environment variables (``DATABASE_URL``,
``OPENAI_API_KEY`` and the ``BANK_IMPORT_*`` tunables) are loaded from a
local ``.env`` using ``python-dotenv`` before delegating to
``bank_import.api``.

Exit codes: 0 on success (with or without warnings), 1 on a typed failure or
an unreadable input file.
"""

from __future__ import annotations

import json
import mimetypes
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo

from .logging_setup import configure_logging
from .models import ParseResult, RawTransaction
from .normalizers import format_cents


# Module-level argument object to satisfy ruff B008 (no calls in parameter defaults).
FILE_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Bank export to read (CSV/TSV text or PDF statement).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # reported by the handler with a clear message
)


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        print(f"Error: cannot read {path}: {e}", file=sys.stderr)
        raise typer.Exit(1) from e


def _guess_media_type(path: Path) -> str | None:
    media_type, _ = mimetypes.guess_type(path.name)
    return media_type


def _tx_to_json(tx: RawTransaction) -> dict[str, Any]:
    out = asdict(tx)
    out["date"] = tx.date.isoformat()
    out["amount"] = format_cents(tx.amount_cents)
    return out


def _parse_result_to_json(result: ParseResult) -> dict[str, Any]:
    return {
        "adapter_used": result.adapter_used,
        "document_error": result.document_error,
        "transactions": [_tx_to_json(tx) for tx in result.transactions],
        "warnings": list(result.warnings),
    }


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import Dutch bank exports (ING/Rabobank CSV and PDF statements), "
        "categorize them and persist them idempotently."
    ),
)


@app.callback()
def _root() -> None:
    """Load ``.env`` from the current directory (existing env wins) and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


@app.command("parse")
def parse_cmd(file: Annotated[Path, FILE_ARGUMENT]) -> None:
    """Detect the format of FILE, parse it and print records and warnings as JSON (no writes)."""

    from .api import parse_document

    data = _read_bytes(file)
    result = parse_document(data, media_type=_guess_media_type(file), filename=file.name)
    typer.echo(json.dumps(_parse_result_to_json(result), ensure_ascii=False, indent=2))
    if result.document_error and not result.transactions:
        raise typer.Exit(1)


@app.command("import")
def import_cmd(
    file: Annotated[Path, FILE_ARGUMENT],
    *,
    household_id: str = typer.Option(..., help="Target household id."),
    actor_id: str = typer.Option(..., help="Id of the user performing the import."),
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Import FILE into the database for a household."""

    from .api import import_document
    from .errors import ImportFailure

    data = _read_bytes(file)
    outcome = import_document(
        data,
        household_id=household_id,
        actor_id=actor_id,
        media_type=_guess_media_type(file),
        filename=file.name,
        database_url=database_url,
    )
    if isinstance(outcome, ImportFailure):
        print(f"Error [{outcome.kind}]: {outcome.message}", file=sys.stderr)
        for w in (outcome.details or {}).get("warnings", []):
            print(f"  warning: {w}", file=sys.stderr)
        raise typer.Exit(1)

    typer.echo(
        f"Imported {outcome.imported_count} transaction(s) via {outcome.adapter_used} "
        f"({outcome.duplicate_count} duplicate(s), "
        f"{outcome.uncategorized_count} without category)."
    )
    for w in outcome.warnings:
        typer.echo(f"  warning: {w}")


@app.command("init-db")
def init_db_cmd(
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Create all tables directly from the ORM metadata (local SQLite/dev use)."""

    from db import Base
    from db.client import get_engine

    engine = get_engine(database_url=database_url)
    Base.metadata.create_all(engine)
    typer.echo(f"Created tables on {engine.url.render_as_string(hide_password=True)}")


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
