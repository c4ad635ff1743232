"""Pure aggregation helpers over a transaction list.

Nothing here mutates its input or raises on odd data: unparsable dates form
their own bucket keyed by ``"undated:"`` plus the raw date text, and ratios
over an empty denominator are reported as ``0``.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Literal

from .currency import detect_currency
from .models import (
    CategoryShare,
    CategorySuggestion,
    DailyTotal,
    FinancialSummary,
    TransactionRecord,
    Transactions,
)

type WidthClass = Literal["compact", "medium", "wide"]

SAVINGS_TARGET_MINIMUM: float = 20.0
SAVINGS_TARGET_IDEAL: float = 30.0
HIGH_SPENDING_FACTOR: float = 1.5
UNCATEGORIZED_LABELS: frozenset[str] = frozenset({"", "uncategorized"})
# Bucket key prefix for rows whose date text could not be parsed.
UNDATED_PREFIX: str = "undated:"

_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%m/%d/%y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%b %d, %Y",
    "%d %b %Y",
)

_SUGGESTION_RULES: tuple[tuple[str, str], ...] = (
    ("grocery", "Food & Dining"),
    ("gas", "Transportation"),
    ("netflix", "Entertainment"),
)


def parse_calendar_date(value: str) -> date | None:
    """Best-effort conversion of date text to a calendar date.

    Tries ISO (optionally with a time part) first, then a fixed list of
    common statement formats. Returns ``None`` when nothing matches.
    """

    s = (value or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        pass
    # Also try without a trailing time part ("01/15/2024 10:30", "2024/01/15T10:30").
    candidates = tuple(dict.fromkeys((s, s.split("T", 1)[0], s.split()[0])))
    for fmt in _DATE_FORMATS:
        for candidate in candidates:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
    return None


# ---------------------------------------------------------------------------
# Totals and ratios
# ---------------------------------------------------------------------------


def total_income(transactions: Transactions) -> float:
    return sum((t.amount for t in transactions if t.amount > 0), 0.0)


def total_expenses(transactions: Transactions) -> float:
    """Sum of expenses as a positive number."""

    return abs(sum((t.amount for t in transactions if t.amount < 0), 0.0))


def net_savings(transactions: Transactions) -> float:
    return total_income(transactions) - total_expenses(transactions)


def savings_rate(transactions: Transactions) -> float:
    """``(income - expenses) / income`` as a percentage; ``0`` without income."""

    income = total_income(transactions)
    if income <= 0:
        return 0.0
    return (income - total_expenses(transactions)) / income * 100


def savings_status(rate: float) -> Literal["needs_improvement", "good", "excellent"]:
    if rate < SAVINGS_TARGET_MINIMUM:
        return "needs_improvement"
    if rate < SAVINGS_TARGET_IDEAL:
        return "good"
    return "excellent"


def spending_profile(
    transactions: Transactions,
) -> Literal["high-spender", "conservative-saver", "balanced"]:
    income = total_income(transactions)
    expenses = total_expenses(transactions)
    if expenses > income * 0.8:
        return "high-spender"
    if expenses < income * 0.5:
        return "conservative-saver"
    return "balanced"


# ---------------------------------------------------------------------------
# Breakdowns
# ---------------------------------------------------------------------------


def expenses_by_category(transactions: Transactions) -> dict[str, float]:
    """Expense totals per category, largest first (ties keep first-seen order)."""

    totals: dict[str, float] = defaultdict(float)
    for t in transactions:
        if t.amount < 0:
            totals[t.category or "Other"] += abs(t.amount)
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


def top_categories(transactions: Transactions, n: int = 5) -> list[CategoryShare]:
    by_category = expenses_by_category(transactions)
    total = sum(by_category.values())
    return [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=(amount / total * 100) if total > 0 else 0.0,
        )
        for category, amount in list(by_category.items())[:n]
    ]


def _bucket(
    records: Iterable[TransactionRecord], key_fn: Callable[[date], tuple[date, str]]
) -> dict[str, float]:
    dated: dict[date, float] = defaultdict(float)
    undated: dict[str, float] = defaultdict(float)
    keys: dict[date, str] = {}
    for t in records:
        parsed = parse_calendar_date(t.date)
        if parsed is None:
            undated[f"{UNDATED_PREFIX}{t.date}"] += abs(t.amount)
            continue
        bucket_date, label = key_fn(parsed)
        keys[bucket_date] = label
        dated[bucket_date] += abs(t.amount)
    out = {keys[d]: dated[d] for d in sorted(dated)}
    out.update(undated)
    return out


def daily_spending(transactions: Transactions) -> dict[str, float]:
    """Expense totals per ``YYYY-MM-DD`` day in ascending order.

    Rows with unparsable dates are grouped under ``"undated:<raw text>"``
    after all dated buckets.
    """

    return _bucket(
        (t for t in transactions if t.amount < 0),
        lambda d: (d, d.isoformat()),
    )


def monthly_spending(transactions: Transactions) -> dict[str, float]:
    """Absolute amount moved per ``YYYY-MM`` month (income and expenses alike)."""

    return _bucket(
        transactions,
        lambda d: (d.replace(day=1), f"{d.year:04d}-{d.month:02d}"),
    )


def high_spending_days(
    transactions: Transactions, factor: float = HIGH_SPENDING_FACTOR
) -> list[DailyTotal]:
    """Days whose expenses exceed ``factor`` times the average daily expense.

    The average spreads total expenses over every day with activity,
    including days that only saw income.
    """

    daily = daily_spending(transactions)
    if not daily:
        return []
    active_days = _bucket(transactions, lambda d: (d, d.isoformat()))
    average = sum(daily.values()) / len(active_days)
    return [DailyTotal(date=d, amount=a) for d, a in daily.items() if a > average * factor]


def frequent_merchants(transactions: Transactions, n: int | None = None) -> list[tuple[str, int]]:
    """Count expenses by the first word of the description (upper-cased)."""

    counts: Counter[str] = Counter()
    for t in transactions:
        if t.amount < 0:
            words = t.description.split()
            if words:
                counts[words[0].upper()] += 1
    return counts.most_common(n)


def recent_transactions(transactions: Transactions, n: int = 10) -> list[TransactionRecord]:
    """The last ``n`` transactions in input order."""

    if n <= 0:
        return []
    return list(transactions[-n:])


def categorization_suggestions(
    transactions: Transactions, limit: int = 5
) -> list[CategorySuggestion]:
    out: list[CategorySuggestion] = []
    for t in transactions:
        if (t.category or "").strip().lower() not in UNCATEGORIZED_LABELS:
            continue
        lowered = t.description.lower()
        suggested = next((cat for kw, cat in _SUGGESTION_RULES if kw in lowered), "Other")
        out.append(CategorySuggestion(description=t.description, suggested_category=suggested))
        if len(out) >= limit:
            break
    return out


def chart_label(name: str, percentage: float, width_class: WidthClass) -> str:
    """Pie slice label for the given display width class.

    ``compact`` shows only the share, ``medium`` truncates names longer than
    8 characters, ``wide`` shows the full name.
    """

    pct = f"{percentage:.1f}%"
    if width_class == "compact":
        return pct
    if width_class == "medium" and len(name) > 8:
        return f"{name[:8]}... {pct}"
    return f"{name} {pct}"


def summarize(transactions: Transactions, currency: str | None = None) -> FinancialSummary:
    """Bundle the derived figures for one analysis session.

    ``currency`` defaults to :func:`~finance_advisor.currency.detect_currency`.
    """

    rate = savings_rate(transactions)
    return FinancialSummary(
        currency=currency or detect_currency(transactions),
        transaction_count=len(transactions),
        total_income=total_income(transactions),
        total_expenses=total_expenses(transactions),
        net_savings=net_savings(transactions),
        savings_rate=rate,
        savings_status=savings_status(rate),
        spending_profile=spending_profile(transactions),
        top_categories=top_categories(transactions),
        daily_spending=[DailyTotal(date=d, amount=a) for d, a in daily_spending(transactions).items()],
        monthly_spending=monthly_spending(transactions),
        high_spending_days=high_spending_days(transactions),
    )


__all__ = [
    "categorization_suggestions",
    "chart_label",
    "daily_spending",
    "expenses_by_category",
    "frequent_merchants",
    "high_spending_days",
    "monthly_spending",
    "net_savings",
    "parse_calendar_date",
    "recent_transactions",
    "savings_rate",
    "savings_status",
    "spending_profile",
    "summarize",
    "top_categories",
    "total_expenses",
    "total_income",
]
