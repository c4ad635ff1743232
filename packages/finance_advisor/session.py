"""Upload handling for one analysis session.

:class:`AnalysisSession` is the boundary between raw uploads and the rest of
the application. It is the only place that catches
:class:`~finance_advisor.errors.IngestError`: failures become an
:class:`UploadOutcome` carrying a user-facing message, and the session's
current transactions stay exactly as they were. State is replaced only after
parsing and currency detection have both completed.

One upload at a time is assumed; callers serialize submissions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path

from .currency import DEFAULT_CURRENCY, detect_currency
from .errors import IngestError
from .ingest import detect_file_kind, ensure_within_size_limit, parse_file
from .logging_setup import get_logger
from .models import FinancialSummary, TransactionRecord
from .summary import summarize

_logger = get_logger("finance_advisor.session")


@dataclass(frozen=True, slots=True)
class UploadOutcome:
    ok: bool
    message: str
    count: int = 0


@dataclass(slots=True)
class AnalysisSession:
    """In-memory state for the currently loaded file.

    ``currency_override`` pins the currency used for both amount parsing and
    display; when unset the parser sniffs a hint and the detector picks the
    display currency.
    """

    currency_override: str | None = None
    transactions: tuple[TransactionRecord, ...] = field(default=())
    currency: str = DEFAULT_CURRENCY
    source_name: str | None = None

    @property
    def has_data(self) -> bool:
        return bool(self.transactions)

    def upload(self, filename: str, data: bytes) -> UploadOutcome:
        """Parse ``data`` (named ``filename``) and, on success, replace the session data."""

        try:
            ensure_within_size_limit(len(data))
            kind = detect_file_kind(filename, data[:8])
            records = parse_file(data, kind, currency=self.currency_override)
            currency = self.currency_override or detect_currency(records)
        except IngestError as e:
            _logger.warning(
                "session:upload_rejected file=%s error=%s", filename, e.__class__.__name__
            )
            return UploadOutcome(ok=False, message=str(e))

        self.transactions = tuple(records)
        self.currency = currency.upper()
        self.source_name = filename
        _logger.info(
            "session:upload_applied file=%s transactions=%d currency=%s",
            filename,
            len(records),
            self.currency,
        )
        return UploadOutcome(
            ok=True,
            message=f"{len(records)} transactions analyzed ({self.currency})",
            count=len(records),
        )

    def load_path(self, path: str | PathLike[str]) -> UploadOutcome:
        """Upload a file from disk, checking its size before reading it."""

        p = Path(path)
        try:
            ensure_within_size_limit(p.stat().st_size)
        except IngestError as e:
            return UploadOutcome(ok=False, message=str(e))
        return self.upload(p.name, p.read_bytes())

    def clear(self) -> None:
        self.transactions = ()
        self.currency = DEFAULT_CURRENCY
        self.source_name = None

    def summary(self) -> FinancialSummary:
        return summarize(self.transactions, self.currency)


__all__ = ["AnalysisSession", "UploadOutcome"]
