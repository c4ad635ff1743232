"""Narrative financial advice from a hosted model (OpenAI Responses API).

Public API:
    - :func:`generate_insights`

The model's answer is opaque text; the only validation is that some text
came back. The auxiliary figures on :class:`InsightReport` (monthly totals,
income/expenses, savings rate, category suggestions) are computed locally
from the same transactions, not parsed from the model output.

No side effects occur at import time (no client creation, no environment
reads).
"""

from __future__ import annotations

import os
import random
import time
from typing import Any

from openai import OpenAI

from . import prompting, summary
from .currency import detect_currency
from .logging_setup import get_logger
from .models import InsightReport, InsightRequest, Transactions

# ---- Tunables (private) ------------------------------------------------------

_MAX_ATTEMPTS: int = 3
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20
_DEFAULT_MODEL: str = "gpt-5"

_logger = get_logger("finance_advisor.insights")


# ---- Internal helpers --------------------------------------------------------


def _model_name() -> str:
    return os.getenv("FINANCE_ADVISOR_MODEL") or _DEFAULT_MODEL


def _create_client() -> OpenAI:
    if not os.getenv("OPENAI_API_KEY"):
        raise RuntimeError("OPENAI_API_KEY environment variable is required for insights")
    return OpenAI()


def _extract_output_text(resp: Any) -> str:
    """Locate the text output on a Responses SDK result.

    Prefers ``resp.output_text``; falls back to ``resp.output[0].content[0].text``
    (or its ``.value``). Raises ``ValueError`` when no non-empty text exists.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        try:
            first = resp.output[0] if getattr(resp, "output", None) else None
            content = getattr(first, "content", None)
            if content:
                txt_obj = getattr(content[0], "text", None)
                if isinstance(txt_obj, str):
                    text = txt_obj
                else:
                    maybe_val = getattr(txt_obj, "value", None)
                    if isinstance(maybe_val, str):
                        text = maybe_val
        except (AttributeError, IndexError, TypeError):
            text = None
    if not text or not isinstance(text, str) or not text.strip():
        raise ValueError("Insight service returned no text output")
    return text.strip()


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for HTTP 429 and 5xx errors."""

    sc = getattr(exc, "status_code", None)
    return isinstance(sc, int) and (sc == 429 or 500 <= sc < 600)


def _sleep_backoff(attempt_no: int) -> None:
    if attempt_no - 1 < len(_BACKOFF_SCHEDULE_SEC):
        base = _BACKOFF_SCHEDULE_SEC[attempt_no - 1]
    else:
        base = _BACKOFF_SCHEDULE_SEC[-1]
    jitter = base * _JITTER_PCT
    time.sleep(max(0.0, base + random.uniform(-jitter, jitter)))


def _request_text(request: InsightRequest) -> str:
    instructions = prompting.build_system_instructions()
    user_content = prompting.build_user_content(request)
    model = _model_name()

    _logger.info(
        "insights:request model=%s num_transactions=%d currency=%s",
        model,
        len(request.transactions),
        request.currency,
    )
    client = _create_client()
    attempt = 1
    while True:
        t0 = time.perf_counter()
        try:
            resp = client.responses.create(
                model=model,
                instructions=instructions,
                input=user_content,
            )
            text = _extract_output_text(resp)
            _logger.info(
                "insights:done latency_ms=%.2f chars=%d",
                (time.perf_counter() - t0) * 1000.0,
                len(text),
            )
            return text
        except Exception as e:  # noqa: BLE001
            dt_ms = (time.perf_counter() - t0) * 1000.0
            if attempt >= _MAX_ATTEMPTS or not _is_retryable(e):
                _logger.error(
                    "insights:failed_terminal attempt=%d latency_ms=%.2f error=%s",
                    attempt,
                    dt_ms,
                    e.__class__.__name__,
                )
                if isinstance(e, ValueError):
                    raise
                raise RuntimeError(f"insight request failed: {e}") from e
            _logger.warning(
                "insights:retry attempt=%d latency_ms=%.2f error=%s",
                attempt,
                dt_ms,
                e.__class__.__name__,
            )
            _sleep_backoff(attempt)
            attempt += 1


# ---- Public API --------------------------------------------------------------


def build_request(transactions: Transactions, currency: str | None = None) -> InsightRequest:
    """Build the payload sent to the insight service.

    ``currency`` defaults to the detected currency of ``transactions``.
    """

    return InsightRequest.from_records(transactions, currency or detect_currency(transactions))


def generate_insights(transactions: Transactions, currency: str | None = None) -> InsightReport:
    """Ask the hosted model for narrative advice on ``transactions``.

    Raises
    ------
    ValueError
        When ``transactions`` is empty or the model returns no text.
    RuntimeError
        When ``OPENAI_API_KEY`` is missing or the call fails after retries.
    """

    if not transactions:
        raise ValueError("generate_insights requires at least one transaction")
    request = build_request(transactions, currency)
    text = _request_text(request)
    return InsightReport(
        insights=text,
        currency=request.currency,
        categorization_suggestions=summary.categorization_suggestions(transactions),
        monthly_spending=summary.monthly_spending(transactions),
        total_income=summary.total_income(transactions),
        total_expenses=summary.total_expenses(transactions),
        savings_rate=round(summary.savings_rate(transactions), 1),
    )


__all__ = ["build_request", "generate_insights"]
