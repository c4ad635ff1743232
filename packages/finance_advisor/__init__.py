"""Public interface for the ``finance_advisor`` package.

This module re-exports the package's API functions and public models/types as
the stable import surface. There is no runtime logic here.
"""

from .currency import (
    CURRENCY_CATALOG,
    CURRENCY_PROFILES,
    DEFAULT_CURRENCY,
    detect_currency,
    format_currency,
    parse_amount,
    parse_amount_strict,
    score_currencies,
)
from .errors import (
    EmptyFileError,
    FileTooLargeError,
    IncompleteRowError,
    IngestError,
    InvalidAmountError,
    InvalidHeaderError,
    NoValidRowsError,
    UnsupportedFileTypeError,
)
from .ingest import detect_file_kind, load_transactions, parse_file
from .insights import generate_insights
from .models import (
    CurrencyProfile,
    FinancialSummary,
    InsightReport,
    InsightRequest,
    TransactionRecord,
    Transactions,
)
from .session import AnalysisSession, UploadOutcome
from .summary import summarize

__all__ = [
    # API
    "detect_currency",
    "detect_file_kind",
    "format_currency",
    "generate_insights",
    "load_transactions",
    "parse_amount",
    "parse_amount_strict",
    "parse_file",
    "score_currencies",
    "summarize",
    "AnalysisSession",
    "UploadOutcome",
    # Catalog
    "CURRENCY_CATALOG",
    "CURRENCY_PROFILES",
    "DEFAULT_CURRENCY",
    # Models / types
    "CurrencyProfile",
    "FinancialSummary",
    "InsightReport",
    "InsightRequest",
    "TransactionRecord",
    "Transactions",
    # Errors
    "IngestError",
    "FileTooLargeError",
    "UnsupportedFileTypeError",
    "EmptyFileError",
    "InvalidHeaderError",
    "IncompleteRowError",
    "InvalidAmountError",
    "NoValidRowsError",
]
