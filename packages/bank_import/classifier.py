"""Transaction classifier boundary and its OpenAI implementation.

Public API:
    - :class:`Classifier` (call contract)
    - :class:`OpenAIClassifier`
    - :func:`classify_with_retry`

A classifier call takes ``(description, amount, counterparty)`` and returns a
validated :class:`~bank_import.models.Classification`, ``None`` when it has no
answer, or raises. Only transient failures are retried; everything else is
terminal. :func:`classify_with_retry` never raises for classifier failures:
the record degrades to "no category" and a warning is returned.
"""

from __future__ import annotations

import json
import os
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol

import openai
from openai import OpenAI
from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)
from pydantic import ValidationError

from .errors import TransientClassifierError
from .logging_setup import get_logger
from .models import CATEGORY_LABELS, Classification, RawTransaction
from .normalizers import cents_to_decimal

_MODEL_DEFAULT: str = "gpt-4o"

_logger = get_logger("bank_import.classifier")


class Classifier(Protocol):
    def __call__(
        self, description: str, amount: Decimal, counterparty: str | None
    ) -> Classification | None: ...


# ---- OpenAI implementation ----------------------------------------------------


_INSTRUCTIONS = (
    "Categorize the given bank transaction into exactly one of the predefined "
    "categories. Negative amounts are usually expenses. Positive amounts are "
    "usually income (Salaris, Toeslagen, Teruggave). \"Albert Heijn\", \"Jumbo\" "
    "and \"Lidl\" are usually Boodschappen; \"Shell\", \"Esso\" and \"NS\" are "
    "usually Vervoer; \"Ziggo\" and \"KPN\" are usually Internet/TV or Mobiel. "
    "Provide the most likely category, a confidence score between 0 and 1, and "
    "a brief reasoning. Output JSON only per the schema."
)


def build_user_content(description: str, amount: Decimal, counterparty: str | None) -> str:
    return (
        "Transaction details:\n"
        f"- Description: {json.dumps(description, ensure_ascii=False)}\n"
        f"- Amount: {amount} EUR\n"
        f"- Counterparty: {json.dumps(counterparty or 'Unknown', ensure_ascii=False)}"
    )


def build_response_format() -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema response format over the closed label set."""

    return {
        "type": "json_schema",
        "name": "transaction_category",
        "schema": {
            "type": "object",
            "properties": {
                "category": {"type": "string", "enum": list(CATEGORY_LABELS)},
                "confidence": {"type": "number", "minimum": 0, "maximum": 1},
                "reasoning": {"type": "string"},
            },
            "required": ["category", "confidence", "reasoning"],
            "additionalProperties": False,
        },
        "strict": True,
    }


def _extract_response_json_mapping(resp: Any) -> Mapping[str, Any]:
    """Decode the JSON object from a Responses API result.

    Prefers ``resp.output_text`` and falls back to
    ``resp.output[0].content[0].text``. Raises ``ValueError`` when no text can
    be located or it is not a JSON object.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        try:
            first = resp.output[0] if getattr(resp, "output", None) else None
            content = getattr(first, "content", None)
            if content:
                txt_obj = getattr(content[0], "text", None)
                text = txt_obj if isinstance(txt_obj, str) else getattr(txt_obj, "value", None)
        except Exception:  # noqa: BLE001 - tolerate SDK shape differences
            text = None
    if not text or not isinstance(text, str):
        raise ValueError("Unexpected Responses API shape; unable to locate text output")

    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError("Model output was not valid JSON per the requested schema") from e
    if not isinstance(decoded, Mapping):
        raise ValueError("Model output must be a JSON object")
    return decoded


def _create_client(api_key: str | None = None) -> OpenAI:
    return OpenAI(api_key=api_key) if api_key else OpenAI()


class OpenAIClassifier:
    """Classifier backed by the OpenAI Responses API.

    Without an API key every call returns ``None`` (no category) and a single
    warning is logged for the lifetime of the instance. The client is created
    lazily on the first call and shared across threads.
    """

    def __init__(self, *, model: str = _MODEL_DEFAULT, api_key: str | None = None) -> None:
        self.model = model
        self._api_key = api_key
        self._client: OpenAI | None = None
        self._lock = threading.Lock()
        self._warned_missing_key = False

    def _has_api_key(self) -> bool:
        return bool(self._api_key) or bool(os.getenv("OPENAI_API_KEY"))

    def _get_client(self) -> OpenAI:
        with self._lock:
            if self._client is None:
                self._client = _create_client(self._api_key)
            return self._client

    def __call__(
        self, description: str, amount: Decimal, counterparty: str | None
    ) -> Classification | None:
        if not self._has_api_key():
            with self._lock:
                if not self._warned_missing_key:
                    self._warned_missing_key = True
                    _logger.warning("classify:disabled reason=missing_api_key")
            return None

        resp = self._get_client().responses.create(
            model=self.model,
            instructions=_INSTRUCTIONS,
            input=build_user_content(description, amount, counterparty),
            text={"format": build_response_format()},
        )
        decoded = _extract_response_json_mapping(resp)
        try:
            return Classification.model_validate(decoded)
        except ValidationError as e:
            raise ValueError(f"Model output failed validation: {e.error_count()} error(s)") from e


# ---- Retry wrapper --------------------------------------------------------------


def _is_retryable(exc: BaseException) -> bool:
    """Return True for rate limits, 5xx, connection/timeout errors and explicit transients.

    Parsing and validation failures (``ValueError``) are terminal.
    """

    if isinstance(exc, TransientClassifierError | openai.APIConnectionError | TimeoutError):
        return True
    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


@dataclass(frozen=True, slots=True)
class ClassifyOutcome:
    classification: Classification | None
    warning: str | None = None


def classify_with_retry(
    classifier: Classifier,
    tx: RawTransaction,
    *,
    gate: threading.Semaphore,
    max_attempts: int,
    backoff_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> ClassifyOutcome:
    """Classify one record, holding a ``gate`` slot per attempt.

    The slot is released between attempts so a backing-off call does not
    occupy the concurrency ceiling. After ``max_attempts`` transient failures,
    or on the first terminal failure, the outcome carries no classification
    and one warning.
    """

    amount = cents_to_decimal(tx.amount_cents)
    attempt = 1
    while True:
        try:
            with gate:
                result = classifier(tx.description, amount, tx.counterparty_name)
            return ClassifyOutcome(classification=result)
        except Exception as e:  # noqa: BLE001 - degrade to "no category"
            if attempt >= max_attempts or not _is_retryable(e):
                _logger.warning(
                    "classify:failed hash=%s attempts=%d error=%s",
                    tx.import_hash[:12],
                    attempt,
                    e.__class__.__name__,
                )
                return ClassifyOutcome(
                    classification=None,
                    warning=(
                        f"{tx.date.isoformat()} {tx.description!r}: classification failed "
                        f"after {attempt} attempt(s) ({e.__class__.__name__}); "
                        "stored without category"
                    ),
                )
            _logger.info(
                "classify:retry hash=%s attempt=%d error=%s",
                tx.import_hash[:12],
                attempt,
                e.__class__.__name__,
            )
            sleep(backoff_seconds)
            attempt += 1


__all__ = [
    "Classifier",
    "ClassifyOutcome",
    "OpenAIClassifier",
    "build_response_format",
    "build_user_content",
    "classify_with_retry",
]
