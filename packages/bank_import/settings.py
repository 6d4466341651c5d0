"""Runtime tunables for an import run.

Values are read from the environment once per run (``ImportSettings.from_env``)
and can be overridden explicitly by callers and tests. Unparseable environment
values fall back to the defaults; explicit non-positive sizes are rejected.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any

_CHUNK_SIZE_DEFAULT: int = 50
_CONCURRENCY_DEFAULT: int = 5
_CONCURRENCY_CAP: int = 32
_MAX_ATTEMPTS_DEFAULT: int = 3
_BACKOFF_SEC_DEFAULT: float = 0.5
_MODEL_DEFAULT: str = "gpt-4o"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True, slots=True)
class ImportSettings:
    """Tunables for chunked enrichment and the classifier boundary.

    Attributes
    ----------
    chunk_size:
        Records per enrichment chunk (bounds memory and call burstiness).
    concurrency:
        Maximum classifier calls in flight within one chunk.
    max_attempts:
        Attempts per classifier call before degrading to "no category".
    backoff_seconds:
        Fixed delay between attempts.
    model:
        Model name used by the OpenAI classifier.
    """

    chunk_size: int = _CHUNK_SIZE_DEFAULT
    concurrency: int = _CONCURRENCY_DEFAULT
    max_attempts: int = _MAX_ATTEMPTS_DEFAULT
    backoff_seconds: float = _BACKOFF_SEC_DEFAULT
    model: str = _MODEL_DEFAULT

    def __post_init__(self) -> None:
        for name in ("chunk_size", "concurrency", "max_attempts"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
                raise ValueError(f"ImportSettings.{name} must be a positive integer")
        if self.concurrency > _CONCURRENCY_CAP:
            object.__setattr__(self, "concurrency", _CONCURRENCY_CAP)
        if self.backoff_seconds < 0:
            raise ValueError("ImportSettings.backoff_seconds must be >= 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> ImportSettings:
        """Build settings from ``BANK_IMPORT_*`` variables, then apply ``overrides``."""

        base = cls(
            chunk_size=_env_int("BANK_IMPORT_CHUNK_SIZE", _CHUNK_SIZE_DEFAULT),
            concurrency=_env_int("BANK_IMPORT_CONCURRENCY", _CONCURRENCY_DEFAULT),
            max_attempts=_env_int("BANK_IMPORT_MAX_ATTEMPTS", _MAX_ATTEMPTS_DEFAULT),
            backoff_seconds=_env_float("BANK_IMPORT_BACKOFF_SEC", _BACKOFF_SEC_DEFAULT),
            model=os.getenv("BANK_IMPORT_MODEL") or _MODEL_DEFAULT,
        )
        return replace(base, **overrides) if overrides else base


__all__ = ["ImportSettings"]
