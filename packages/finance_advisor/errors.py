"""Ingestion error taxonomy.

All errors raised by :mod:`finance_advisor.ingest` derive from
:class:`IngestError` (itself a ``ValueError``), so the upload boundary can
catch one type and show ``str(exc)`` to the user. Row numbers are 1-based and
count data rows only: the first row after the header is row 1.
"""

from __future__ import annotations


class IngestError(ValueError):
    """Base class for any failure to turn an uploaded file into transactions."""


class FileTooLargeError(IngestError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"File is too large ({size} bytes); the maximum upload size is {limit} bytes"
        )
        self.size = size
        self.limit = limit


class UnsupportedFileTypeError(IngestError):
    def __init__(self, name: str | None, detail: str | None = None) -> None:
        if name:
            msg = f"Unsupported file type: {name!r}; upload a CSV or .xlsx spreadsheet"
        else:
            msg = "Unsupported file content; upload a CSV or .xlsx spreadsheet"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
        self.name = name


class EmptyFileError(IngestError):
    def __init__(self) -> None:
        super().__init__("File is empty: expected a header row and at least one data row")


class InvalidHeaderError(IngestError):
    def __init__(self, columns: int) -> None:
        super().__init__(
            f"Invalid header: expected at least 4 columns "
            f"(date, description, amount, category), found {columns}"
        )
        self.columns = columns


class IncompleteRowError(IngestError):
    def __init__(self, row: int, cells: int) -> None:
        super().__init__(f"Row {row} is incomplete: expected 4 columns, found {cells}")
        self.row = row
        self.cells = cells


class InvalidAmountError(IngestError):
    def __init__(self, row: int, raw_value: object) -> None:
        super().__init__(f"Row {row} has an invalid amount: {raw_value!r}")
        self.row = row
        self.raw_value = raw_value


class NoValidRowsError(IngestError):
    def __init__(self) -> None:
        super().__init__("No valid transactions found: every row had a zero amount")


__all__ = [
    "EmptyFileError",
    "FileTooLargeError",
    "IncompleteRowError",
    "IngestError",
    "InvalidAmountError",
    "InvalidHeaderError",
    "NoValidRowsError",
    "UnsupportedFileTypeError",
]
