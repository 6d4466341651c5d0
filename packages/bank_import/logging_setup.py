"""Logging for the import pipeline.

Every pipeline module logs through ``get_logger("bank_import.<module>")`` with
short ``stage:event key=value`` messages (``import:start``,
``delimited:done``, ``enrich:chunk_done``, ``classify:retry``). Nothing is
printed until an entry point calls :func:`configure_logging`; the CLI does so
once at start-up, a host application may instead attach its own handlers to
the ``bank_import`` logger.

``BANK_IMPORT_LOG_LEVEL`` sets the level when none is passed explicitly.
PDF extraction (``pdfminer``) and the OpenAI client (``openai``, ``httpx``)
log per page and per request; they are held at WARNING unless the pipeline
itself runs at DEBUG.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_ROOT = "bank_import"
_LEVEL_ENV = "BANK_IMPORT_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CHATTY_DEPENDENCIES: tuple[str, ...] = ("pdfminer", "openai", "httpx")

_configured = False


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or ``BANK_IMPORT_LOG_LEVEL``) into a numeric level; INFO otherwise."""

    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    return numeric if numeric is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send ``bank_import`` records to ``stream``; later calls are no-ops.

    Parameters
    ----------
    level:
        Numeric level or level name. ``None`` reads ``BANK_IMPORT_LOG_LEVEL``.
    fmt:
        Format string for the single stream handler.
    stream:
        Destination, ``sys.stderr`` by default so ``bank-import parse`` output
        on stdout stays valid JSON.
    """

    global _configured
    if _configured:
        return

    resolved = resolve_level(level)
    logger = logging.getLogger(_ROOT)
    for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False

    if resolved > logging.DEBUG:
        for name in _CHATTY_DEPENDENCIES:
            logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(_ROOT)
    if not _configured and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
