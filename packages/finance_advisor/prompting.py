"""Prompt construction and transaction serialization for the insight service.

This module builds:
- A deterministic JSON serialization of transaction payloads with a fixed
  field order.
- The system instructions and user content for the financial-advice task.

Amounts inside the prose snapshot are rendered with
:func:`~finance_advisor.currency.format_currency` in the session's currency
so the model sees the same figures the user does.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from . import summary
from .currency import format_currency
from .models import InsightRequest, TransactionRecord

TRANSACTION_FIELD_ORDER: tuple[str, ...] = ("date", "description", "amount", "category")

BEGIN_MARKER = "BEGIN_TRANSACTIONS_JSON"
END_MARKER = "END_TRANSACTIONS_JSON"

_RECENT_COUNT = 10


def serialize_transactions_to_json(items: Sequence[Mapping[str, Any]]) -> str:
    """Serialize transaction payloads to a JSON array with a fixed field order.

    Field order per object is exactly: ``date, description, amount, category``.
    """

    arr: list[dict[str, Any]] = []
    for item in items:
        arr.append({key: item.get(key) for key in TRANSACTION_FIELD_ORDER})
    return json.dumps(arr, ensure_ascii=False)


def build_system_instructions() -> str:
    """Return concise system instructions for the advisor persona."""

    return (
        "You are a careful personal-finance advisor. Analyze the user's transactions and "
        "give personalized, actionable advice grounded in their exact figures. Quote amounts "
        "in the user's currency, reference real transaction descriptions, and avoid generic "
        "advice. Respond in plain text with short headed sections."
    )


def _signed(amount: float, currency: str) -> str:
    prefix = "+" if amount >= 0 else ""
    return f"{prefix}{format_currency(amount, currency)}"


def build_user_content(request: InsightRequest, *, today: date | None = None) -> str:
    """Build the user message: a financial snapshot plus the delimited JSON.

    Sections, in order: spending profile and analysis date, income/expense
    snapshot with savings rate, top spending categories, high-spending days,
    the most recent transactions, the requested output outline, and finally
    the transactions JSON between ``BEGIN_TRANSACTIONS_JSON`` and
    ``END_TRANSACTIONS_JSON`` markers.
    """

    currency = request.currency
    records = [TransactionRecord(**t.model_dump()) for t in request.transactions]
    income = summary.total_income(records)
    expenses = summary.total_expenses(records)
    rate = summary.savings_rate(records)
    today = today or date.today()

    lines: list[str] = [
        f"USER PROFILE DETECTED: {summary.spending_profile(records)}",
        f"ANALYSIS DATE: {today.isoformat()}",
        f"CURRENCY: {currency}",
        "",
        "FINANCIAL SNAPSHOT:",
        f"- Income: {format_currency(income, currency)}",
        f"- Expenses: {format_currency(expenses, currency)}",
        f"- Net Position: {format_currency(income - expenses, currency)}",
        f"- Savings Rate: {rate:.1f}%",
        "",
        "TOP SPENDING CATEGORIES:",
    ]
    top = summary.top_categories(records)
    if top:
        for i, share in enumerate(top, start=1):
            lines.append(
                f"{i}. {share.category}: {format_currency(share.amount, currency)} "
                f"({share.percentage:.1f}%)"
            )
    else:
        lines.append("No expenses recorded")

    lines += ["", "HIGH-SPENDING PATTERNS:"]
    spikes = summary.high_spending_days(records)
    if spikes:
        avg = sum(d.amount for d in spikes) / len(spikes)
        lines.append(
            f"Detected {len(spikes)} high-spending days averaging "
            f"{format_currency(avg, currency)} per day"
        )
    else:
        lines.append("No unusual spending spikes detected")

    lines += ["", f"RECENT TRANSACTIONS (last {_RECENT_COUNT}):"]
    for t in summary.recent_transactions(records, _RECENT_COUNT):
        lines.append(f"{t.date}: {t.description} -> {_signed(t.amount, currency)} [{t.category}]")

    lines += [
        "",
        "Respond with these sections, using the user's exact numbers:",
        "1. PERSONALIZED INSIGHTS: spending signature, biggest strength, primary risk.",
        "2. BEHAVIORAL ANALYSIS: peak spending periods, category dominance, frequency patterns.",
        "3. OPTIMIZATION PLAN: monthly savings potential and three quick wins with amounts.",
        "4. 30-DAY ACTION PLAN: one concrete task per week with expected savings.",
        "5. PREDICTIVE ANALYSIS: six-month projection at the current rate and the effect "
        "of cutting the top category by 15%.",
        "",
        BEGIN_MARKER,
        serialize_transactions_to_json([t.model_dump() for t in request.transactions]),
        END_MARKER,
    ]
    return "\n".join(lines)


__all__ = [
    "BEGIN_MARKER",
    "END_MARKER",
    "TRANSACTION_FIELD_ORDER",
    "build_system_instructions",
    "build_user_content",
    "serialize_transactions_to_json",
]
