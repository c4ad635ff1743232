"""Test helpers to stub the OpenAI Responses client used by ``insights.py``.

The stub records every ``responses.create(...)`` call and answers with a
scripted sequence of outcomes: a string becomes the response's
``output_text``; an exception instance is raised instead.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

BEGIN = "BEGIN_TRANSACTIONS_JSON\n"
END = "\nEND_TRANSACTIONS_JSON"


def extract_transactions_from_user_content(user_content: str) -> list[dict[str, Any]]:
    b = user_content.find(BEGIN)
    e = user_content.rfind(END)
    if b == -1 or e == -1 or e <= b:
        raise AssertionError("insights: user content missing embedded transactions JSON block")
    return json.loads(user_content[b + len(BEGIN) : e])


class StatusError(Exception):
    """Exception carrying an HTTP ``status_code`` like the SDK's ``APIStatusError``."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class OpenAIStub:
    """Minimal stand-in for ``openai.OpenAI`` exposing ``responses.create``.

    Parameters
    ----------
    outcomes:
        Per-call outcomes in order; the last one repeats once exhausted.
    calls_out:
        Optional list to append each call's kwargs to.
    """

    def __init__(
        self,
        outcomes: Sequence[str | BaseException],
        calls_out: list[dict[str, Any]] | None = None,
    ) -> None:
        self._outcomes = list(outcomes)
        self._calls = calls_out if calls_out is not None else []

        class _Responses:
            def __init__(self, outer: OpenAIStub) -> None:
                self._outer = outer

            def create(self, **kwargs):
                outer = self._outer
                outer._calls.append(kwargs)
                pos = min(len(outer._calls), len(outer._outcomes)) - 1
                outcome = outer._outcomes[pos]
                if isinstance(outcome, BaseException):
                    raise outcome

                class _Resp:
                    output_text: str

                resp = _Resp()
                resp.output_text = outcome
                return resp

        self.responses = _Responses(self)

    def __call__(self, *args: Any, **kwargs: Any) -> OpenAIStub:
        # Lets a stub instance be patched in where the ``OpenAI`` class is expected.
        return self

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._calls
