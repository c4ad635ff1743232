"""Data models and type aliases for ``finance_advisor``.

Domain records are frozen ``dataclass`` instances: cheap to build in bulk and
immutable once the parser hands them out. Payloads that cross a process or
network boundary (the insight service request/response, the JSON summary) are
Pydantic models so their shape is validated where it is produced.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Core record and collections
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """A single parsed row of financial activity.

    Attributes
    ----------
    date:
        Date text as found in the file (ideally ``YYYY-MM-DD``). Never parsed
        at ingestion time; see :func:`finance_advisor.summary.parse_calendar_date`
        for bucketing.
    description:
        Free text. Never empty (defaulted by the parser).
    amount:
        Signed amount. Positive is income/credit, negative is expense/debit.
        Records produced by the parser never carry ``0.0``.
    category:
        Free text label, ``"Other"`` when absent in the source file.
    """

    date: str
    description: str
    amount: float
    category: str

    def as_payload(self) -> dict[str, Any]:
        """Return the JSON-friendly ``{date, description, amount, category}`` mapping."""

        return {
            "date": self.date,
            "description": self.description,
            "amount": self.amount,
            "category": self.category,
        }


type Transactions = Sequence[TransactionRecord]
"""An ordered collection of transaction records (input order is meaningful)."""

type CurrencyCode = str
"""Three-letter currency code such as ``"USD"`` or ``"IDR"``."""

type FileKind = Literal["csv", "spreadsheet"]


@dataclass(frozen=True, slots=True)
class CurrencyProfile:
    """Static catalog entry describing one supported currency.

    ``keywords`` mixes words (``"rupiah"``) and glyphs (``"€"``); all are
    lower-case. ``amount_range`` is an inclusive ``(low, high)`` pair of the
    typical mean absolute amount seen in statements in this currency.
    ``decimal_separator``/``thousands_separator`` describe how amounts are
    written in text, which is independent of the display ``locale``.
    """

    code: str
    keywords: tuple[str, ...]
    locale: str
    amount_range: tuple[float, float]
    decimal_separator: str = "."
    thousands_separator: str = ","
    fraction_digits: int = 2

    @property
    def comma_decimal(self) -> bool:
        return self.decimal_separator == "," and self.thousands_separator == "."


# ---------------------------------------------------------------------------
# Insight service payloads
# ---------------------------------------------------------------------------


class InsightTransaction(BaseModel):
    """Wire shape of a transaction sent to the insight service."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    date: str
    description: str
    amount: float
    category: str


class InsightRequest(BaseModel):
    """Payload handed to the insight service: transactions plus currency."""

    model_config = ConfigDict(extra="forbid")

    transactions: list[InsightTransaction]
    currency: str

    @field_validator("currency")
    @classmethod
    def _upper_code(cls, v: str) -> str:
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"currency must be a three-letter code, got {v!r}")
        return code

    @classmethod
    def from_records(cls, records: Transactions, currency: str) -> InsightRequest:
        return cls(
            transactions=[InsightTransaction(**r.as_payload()) for r in records],
            currency=currency,
        )


class CategorySuggestion(BaseModel):
    model_config = ConfigDict(extra="forbid")

    description: str
    suggested_category: str


class InsightReport(BaseModel):
    """Narrative advice plus the auxiliary figures computed for it.

    ``insights`` is opaque model text; only its presence is validated.
    """

    model_config = ConfigDict(extra="forbid")

    insights: str
    currency: str
    categorization_suggestions: list[CategorySuggestion]
    monthly_spending: dict[str, float]
    total_income: float
    total_expenses: float
    savings_rate: float

    @field_validator("insights")
    @classmethod
    def _insights_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("insights must be non-empty")
        return v


# ---------------------------------------------------------------------------
# Summary view
# ---------------------------------------------------------------------------


class CategoryShare(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str
    amount: float
    percentage: float


class DailyTotal(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: str
    amount: float


class FinancialSummary(BaseModel):
    """Derived figures for one analysis session, ready for display or JSON."""

    model_config = ConfigDict(extra="forbid")

    currency: str
    transaction_count: int
    total_income: float
    total_expenses: float
    net_savings: float
    savings_rate: float
    savings_status: Literal["needs_improvement", "good", "excellent"]
    spending_profile: Literal["high-spender", "conservative-saver", "balanced"]
    top_categories: list[CategoryShare]
    daily_spending: list[DailyTotal]
    monthly_spending: dict[str, float]
    high_spending_days: list[DailyTotal]


__all__ = [
    "CategoryShare",
    "CategorySuggestion",
    "CurrencyCode",
    "CurrencyProfile",
    "DailyTotal",
    "FileKind",
    "FinancialSummary",
    "InsightReport",
    "InsightRequest",
    "InsightTransaction",
    "TransactionRecord",
    "Transactions",
]
