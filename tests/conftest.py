"""Pytest configuration for test isolation.

- Makes the workspace packages importable without an editable install
  (``packages/`` for ``bank_import``, ``libs/db/src`` for ``db``, and the repo
  root for ``tests.helpers``).
- Clears the environment variables the import run reads, so a developer's
  ``.env`` or shell (notably ``OPENAI_API_KEY`` and ``DATABASE_URL``) can never
  turn a test into a network call or a write to a real database.
- Disposes cached SQLAlchemy engines after each test so temporary SQLite
  files are released.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in (str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT))
    if p not in sys.path
]

_ISOLATED_ENV = (
    "DATABASE_URL",
    "OPENAI_API_KEY",
    "BANK_IMPORT_CHUNK_SIZE",
    "BANK_IMPORT_CONCURRENCY",
    "BANK_IMPORT_MAX_ATTEMPTS",
    "BANK_IMPORT_BACKOFF_SEC",
    "BANK_IMPORT_MODEL",
    "BANK_IMPORT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _dispose_engines() -> Iterator[None]:
    yield
    from db.client import dispose_engines

    dispose_engines()
