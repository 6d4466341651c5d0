from __future__ import annotations

import json
import threading
from datetime import date
from decimal import Decimal
from typing import Any

import pytest

import bank_import.classifier as classifier_mod
from bank_import.classifier import (
    OpenAIClassifier,
    _extract_response_json_mapping,
    _is_retryable,
    build_response_format,
    classify_with_retry,
)
from bank_import.errors import TransientClassifierError
from bank_import.fingerprint import finalize
from bank_import.models import CATEGORY_LABELS, TransactionDraft
from tests.helpers.classifier_stub import OpenAIStub, ScriptedClassifier, classification, response_json


def _install_stub(monkeypatch: pytest.MonkeyPatch, outputs: list[Any]) -> OpenAIStub:
    stub = OpenAIStub(outputs)
    monkeypatch.setattr(classifier_mod, "_create_client", lambda api_key=None: stub)
    return stub


class _StatusError(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


# ---- OpenAI classifier -------------------------------------------------------------


def test_classifier_sends_schema_and_parses_answer(monkeypatch: pytest.MonkeyPatch) -> None:
    stub = _install_stub(monkeypatch, [response_json("Boodschappen", 0.87, "supermarket")])
    clf = OpenAIClassifier(model="gpt-4o", api_key="sk-test")

    result = clf("BEA, Apple Pay Albert Heijn 1585", Decimal("-31.41"), "Albert Heijn")

    assert result is not None
    assert (result.category, result.confidence, result.reasoning) == (
        "Boodschappen",
        0.87,
        "supermarket",
    )
    (call,) = stub.calls
    assert call["model"] == "gpt-4o"
    assert "Albert Heijn 1585" in call["input"]
    assert "-31.41 EUR" in call["input"]
    fmt = call["text"]["format"]
    assert fmt["strict"] is True
    assert fmt["schema"]["properties"]["category"]["enum"] == list(CATEGORY_LABELS)


def test_unknown_counterparty_is_rendered_explicitly(monkeypatch: pytest.MonkeyPatch) -> None:
    stub = _install_stub(monkeypatch, [response_json("Overige")])

    OpenAIClassifier(api_key="sk-test")("Iets", Decimal("-1.00"), None)

    assert '"Unknown"' in stub.calls[0]["input"]


@pytest.mark.parametrize(
    "payload",
    [
        json.dumps({"category": "Groceries", "confidence": 0.9, "reasoning": "x"}),
        json.dumps({"category": "Boodschappen", "confidence": 1.5, "reasoning": "x"}),
        json.dumps({"category": "Boodschappen", "confidence": 0.5, "reasoning": "  "}),
        "not json",
    ],
)
def test_invalid_model_output_is_a_terminal_value_error(
    monkeypatch: pytest.MonkeyPatch, payload: str
) -> None:
    _install_stub(monkeypatch, [payload])

    with pytest.raises(ValueError) as ei:
        OpenAIClassifier(api_key="sk-test")("x", Decimal("1.00"), None)
    assert not _is_retryable(ei.value)


def test_missing_api_key_returns_none_without_calling(monkeypatch: pytest.MonkeyPatch) -> None:
    stub = _install_stub(monkeypatch, [])
    clf = OpenAIClassifier()

    assert clf("x", Decimal("1.00"), None) is None
    assert clf("y", Decimal("2.00"), None) is None
    assert stub.calls == []


def test_api_key_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    _install_stub(monkeypatch, [response_json("Salaris", 0.99, "werkgever")])

    result = OpenAIClassifier()("Salaris november", Decimal("2500.00"), "Werkgever BV")

    assert result is not None and result.category == "Salaris"


def test_extract_response_json_fallback_shape() -> None:
    class _Text:
        value = json.dumps({"category": "Water", "confidence": 0.7, "reasoning": "Vitens"})

    class _Content:
        text = _Text()

    class _Output:
        content = [_Content()]

    class _Resp:
        output_text = ""
        output = [_Output()]

    assert _extract_response_json_mapping(_Resp())["category"] == "Water"

    class _Empty:
        output_text = None
        output: list[Any] = []

    with pytest.raises(ValueError):
        _extract_response_json_mapping(_Empty())


def test_response_format_has_no_extra_properties() -> None:
    schema = build_response_format()["schema"]
    assert schema["required"] == ["category", "confidence", "reasoning"]
    assert schema["additionalProperties"] is False


# ---- Retry policy --------------------------------------------------------------------


@pytest.mark.parametrize(
    ("exc", "retryable"),
    [
        (_StatusError(429), True),
        (_StatusError(500), True),
        (_StatusError(503), True),
        (_StatusError(400), False),
        (_StatusError(401), False),
        (TransientClassifierError("busy"), True),
        (TimeoutError(), True),
        (ValueError("bad json"), False),
        (RuntimeError("bug"), False),
    ],
)
def test_is_retryable(exc: BaseException, retryable: bool) -> None:
    assert _is_retryable(exc) is retryable


def _tx():
    return finalize(
        TransactionDraft(date=date(2025, 11, 17), amount_cents=-2581, description="Jumbo")
    )


def test_retry_exhaustion_degrades_with_one_warning() -> None:
    stub = ScriptedClassifier(lambda d, a, c: _StatusError(503))
    sleeps: list[float] = []

    outcome = classify_with_retry(
        stub,
        _tx(),
        gate=threading.BoundedSemaphore(1),
        max_attempts=3,
        backoff_seconds=0.5,
        sleep=sleeps.append,
    )

    assert outcome.classification is None
    assert outcome.warning is not None
    assert "3 attempt(s)" in outcome.warning
    assert len(stub.calls) == 3
    assert sleeps == [0.5, 0.5]


def test_gate_slot_is_released_between_attempts() -> None:
    gate = threading.BoundedSemaphore(1)
    seen_free: list[bool] = []
    calls = {"n": 0}

    def decide(d, a, c):
        calls["n"] += 1
        return TransientClassifierError("retry me") if calls["n"] == 1 else classification("Boodschappen")

    def sleep(_s: float) -> None:
        # During backoff the slot must be available to other calls.
        acquired = gate.acquire(blocking=False)
        seen_free.append(acquired)
        if acquired:
            gate.release()

    outcome = classify_with_retry(
        ScriptedClassifier(decide), _tx(), gate=gate, max_attempts=3, backoff_seconds=0.1, sleep=sleep
    )

    assert outcome.classification is not None
    assert outcome.warning is None
    assert seen_free == [True]
