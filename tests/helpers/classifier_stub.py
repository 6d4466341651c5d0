"""Test helpers: scripted classifiers and an OpenAI Responses client stub.

``ScriptedClassifier`` satisfies the classifier call contract without any
network access. Tests provide a ``decide`` callable mapping
``(description, amount, counterparty)`` to a :class:`Classification`, ``None``
or an exception instance (which is raised). The stub records every call and
tracks how many calls were in flight at once.
"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from bank_import.models import Classification

type Decision = Classification | None | BaseException


def classification(category: str, confidence: float = 0.9, reasoning: str = "stub") -> Classification:
    return Classification(category=category, confidence=confidence, reasoning=reasoning)


class ScriptedClassifier:
    """Deterministic classifier stub with in-flight tracking.

    Parameters
    ----------
    decide:
        Maps a call's arguments to the decision to return (or raise).
    delay:
        Seconds to sleep inside each call, to make overlap observable.
    """

    def __init__(
        self,
        decide: Callable[[str, Decimal, str | None], Decision],
        *,
        delay: float = 0.0,
    ) -> None:
        self._decide = decide
        self._delay = delay
        self._lock = threading.Lock()
        self.calls: list[tuple[str, Decimal, str | None]] = []
        self.inflight = 0
        self.max_inflight = 0

    def __call__(
        self, description: str, amount: Decimal, counterparty: str | None
    ) -> Classification | None:
        with self._lock:
            self.calls.append((description, amount, counterparty))
            self.inflight += 1
            self.max_inflight = max(self.max_inflight, self.inflight)
        try:
            if self._delay > 0:
                time.sleep(self._delay)
            decision = self._decide(description, amount, counterparty)
            if isinstance(decision, BaseException):
                raise decision
            return decision
        finally:
            with self._lock:
                self.inflight -= 1

    def calls_for(self, description: str) -> int:
        with self._lock:
            return sum(1 for d, _, _ in self.calls if d == description)


class OpenAIStub:
    """Minimal stub matching the ``openai.OpenAI`` shape used by ``OpenAIClassifier``.

    Every ``responses.create(**kwargs)`` call is recorded and answered with the
    next item of ``outputs``: a string becomes ``output_text``; an exception
    instance is raised.
    """

    def __init__(self, outputs: list[str | BaseException]) -> None:
        self._outputs = list(outputs)
        self.calls: list[dict[str, Any]] = []

        class _Responses:
            def __init__(self, outer: OpenAIStub) -> None:
                self._outer = outer

            def create(self, **kwargs: Any):
                self._outer.calls.append(kwargs)
                nxt = self._outer._outputs.pop(0)
                if isinstance(nxt, BaseException):
                    raise nxt

                class _Resp:
                    output_text: str

                resp = _Resp()
                resp.output_text = nxt
                return resp

        self.responses = _Responses(self)


def response_json(category: str, confidence: float = 0.9, reasoning: str = "stub") -> str:
    return json.dumps({"category": category, "confidence": confidence, "reasoning": reasoning})
