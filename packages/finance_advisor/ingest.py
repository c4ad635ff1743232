"""Uploaded file → transaction records.

Accepts CSV text (RFC 4180 quoting via the stdlib :mod:`csv` module) and
``.xlsx``/``.xlsm`` workbooks (first worksheet only, read with
:mod:`openpyxl`). The logical schema is four positional columns after a
header row::

    date, description, amount, category

Parsing is all-or-nothing: either the full record list is returned or an
:class:`~finance_advisor.errors.IngestError` subclass is raised. Steps run in
a fixed order: size check, decode, structure validation, then per row
completeness, amount resolution and defaulting, followed by the zero-amount
filter and the final non-empty check.
"""

from __future__ import annotations

import csv
import os
import zipfile
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from io import BytesIO, StringIO
from os import PathLike
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .currency import DEFAULT_CURRENCY, parse_amount_strict, sniff_currency
from .errors import (
    EmptyFileError,
    FileTooLargeError,
    IncompleteRowError,
    InvalidAmountError,
    InvalidHeaderError,
    NoValidRowsError,
    UnsupportedFileTypeError,
)
from .logging_setup import get_logger
from .models import FileKind, TransactionRecord

_logger = get_logger("finance_advisor.ingest")

MAX_FILE_BYTES: int = 10 * 1024 * 1024
REQUIRED_COLUMNS: int = 4
DEFAULT_DESCRIPTION: str = "Transaction"
DEFAULT_CATEGORY: str = "Other"
# Rows without a date get PLACEHOLDER_BASE_DATE + (row - 1) days.
PLACEHOLDER_BASE_DATE: date = date(2024, 1, 1)

_CSV_SUFFIXES = frozenset({".csv"})
_SPREADSHEET_SUFFIXES = frozenset({".xlsx", ".xlsm"})
_LEGACY_SPREADSHEET_SUFFIXES = frozenset({".xls"})
_ZIP_MAGIC = b"PK\x03\x04"
_OLE_MAGIC = b"\xd0\xcf\x11\xe0"
_TEXT_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")

type Cell = str | int | float


def max_upload_bytes() -> int:
    """Return the upload size bound, honoring ``FINANCE_ADVISOR_MAX_UPLOAD_BYTES``."""

    env_val = os.getenv("FINANCE_ADVISOR_MAX_UPLOAD_BYTES")
    try:
        limit = int(env_val) if env_val else None
    except ValueError:
        limit = None
    if limit is not None and limit > 0:
        return limit
    return MAX_FILE_BYTES


def ensure_within_size_limit(size: int) -> None:
    limit = max_upload_bytes()
    if size > limit:
        raise FileTooLargeError(size, limit)


def detect_file_kind(filename: str | None, head: bytes = b"") -> FileKind:
    """Classify an upload by extension, cross-checked against leading bytes.

    ``head`` is optional; when given, a zip signature marks a workbook and an
    OLE signature (legacy ``.xls``) or NUL bytes in a ``.csv`` are rejected.
    """

    suffix = Path(filename or "").suffix.lower()
    if head.startswith(_OLE_MAGIC) or suffix in _LEGACY_SPREADSHEET_SUFFIXES:
        raise UnsupportedFileTypeError(filename, "legacy .xls workbooks are not supported")
    if suffix in _SPREADSHEET_SUFFIXES:
        if head and not head.startswith(_ZIP_MAGIC):
            raise UnsupportedFileTypeError(filename, "not a valid .xlsx workbook")
        return "spreadsheet"
    if suffix in _CSV_SUFFIXES:
        if head.startswith(_ZIP_MAGIC):
            return "spreadsheet"
        if b"\x00" in head:
            raise UnsupportedFileTypeError(filename, "binary content in a .csv file")
        return "csv"
    raise UnsupportedFileTypeError(filename)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _decode_text(data: bytes) -> str:
    for encoding in _TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    # latin-1 maps every byte, so this is unreachable in practice.
    raise UnsupportedFileTypeError(None, "undecodable text")


def _clean_cell(value: str) -> str:
    return value.strip().strip("'\"").strip()


def read_csv_rows(data: bytes) -> list[list[Cell]]:
    """Decode CSV bytes into rows of trimmed cells, skipping blank lines."""

    text = _decode_text(data)
    if "\x00" in text:
        raise UnsupportedFileTypeError(None, "binary content in CSV data")
    rows: list[list[Cell]] = []
    try:
        with StringIO(text, newline="") as f:
            for raw in csv.reader(f):
                cells: list[Cell] = [_clean_cell(c) for c in raw]
                if all(c == "" for c in cells):
                    continue
                rows.append(cells)
    except csv.Error as e:
        raise UnsupportedFileTypeError(None, f"unreadable CSV: {e}") from e
    return rows


def _spreadsheet_cell(value: object) -> Cell:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        return value
    return str(value).strip()


def read_spreadsheet_rows(data: bytes) -> list[list[Cell]]:
    """Read the first worksheet of an ``.xlsx`` workbook into rows of cells.

    Fully empty rows are skipped. Data rows are padded with ``""`` up to the
    header's width: a blank cell in a grid is a blank field, and readers
    disagree on whether trailing blanks are reported at all.
    """

    try:
        wb = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise UnsupportedFileTypeError(None, f"unreadable workbook: {e}") from e
    rows: list[list[Cell]] = []
    try:
        ws = wb.worksheets[0]
        for values in ws.iter_rows(values_only=True):
            cells = [_spreadsheet_cell(v) for v in values]
            while cells and cells[-1] == "":
                cells.pop()
            if cells:
                rows.append(cells)
    finally:
        wb.close()
    if rows:
        width = len(rows[0])
        rows = [rows[0], *(r + [""] * (width - len(r)) for r in rows[1:])]
    return rows


# ---------------------------------------------------------------------------
# Record extraction
# ---------------------------------------------------------------------------


def _text(cell: Cell) -> str:
    return str(cell).strip()


def _placeholder_date(row: int) -> str:
    return (PLACEHOLDER_BASE_DATE + timedelta(days=row - 1)).isoformat()


def _resolve_hint(data_rows: Sequence[Sequence[Cell]], currency: str | None) -> str:
    if currency:
        return currency
    samples = [row[2] for row in data_rows if len(row) > 2 and isinstance(row[2], str)]
    return sniff_currency(samples) or DEFAULT_CURRENCY


def extract_records(
    rows: Sequence[Sequence[Cell]], *, currency: str | None = None
) -> list[TransactionRecord]:
    """Validate decoded rows and build the transaction list.

    ``currency`` is the parsing hint for amount text; when omitted it is
    sniffed from currency keywords and glyphs in the amount cells, falling
    back to USD conventions.
    """

    if len(rows) < 2:
        raise EmptyFileError()
    header = rows[0]
    if len(header) < REQUIRED_COLUMNS:
        raise InvalidHeaderError(len(header))

    data_rows = rows[1:]
    hint = _resolve_hint(data_rows, currency)

    records: list[TransactionRecord] = []
    dropped = 0
    for n, row in enumerate(data_rows, start=1):
        if len(row) < REQUIRED_COLUMNS:
            raise IncompleteRowError(n, len(row))
        date_cell, description_cell, amount_cell, category_cell = row[:REQUIRED_COLUMNS]

        # A blank amount cell is a placeholder row, not a malformed value.
        if isinstance(amount_cell, str) and not amount_cell.strip():
            amount = 0.0
        else:
            try:
                amount = parse_amount_strict(amount_cell, hint)
            except ValueError as e:
                raise InvalidAmountError(n, amount_cell) from e

        if amount == 0:
            dropped += 1
            continue

        records.append(
            TransactionRecord(
                date=_text(date_cell) or _placeholder_date(n),
                description=_text(description_cell) or DEFAULT_DESCRIPTION,
                amount=amount,
                category=_text(category_cell) or DEFAULT_CATEGORY,
            )
        )

    if not records:
        raise NoValidRowsError()

    _logger.info(
        "ingest:extracted rows=%d kept=%d dropped_zero=%d hint=%s",
        len(data_rows),
        len(records),
        dropped,
        hint,
    )
    return records


def parse_file(
    file_bytes: bytes, file_kind: FileKind, *, currency: str | None = None
) -> list[TransactionRecord]:
    """Parse an uploaded file into transaction records.

    Raises
    ------
    FileTooLargeError
        Before decoding, when ``file_bytes`` exceeds the upload bound.
    UnsupportedFileTypeError
        For an unknown ``file_kind`` or content that cannot be decoded.
    EmptyFileError, InvalidHeaderError, IncompleteRowError, InvalidAmountError, NoValidRowsError
        See :func:`extract_records`.
    """

    ensure_within_size_limit(len(file_bytes))
    if file_kind == "csv":
        rows = read_csv_rows(file_bytes)
    elif file_kind == "spreadsheet":
        rows = read_spreadsheet_rows(file_bytes)
    else:
        raise UnsupportedFileTypeError(str(file_kind))
    _logger.debug("ingest:decoded kind=%s rows=%d bytes=%d", file_kind, len(rows), len(file_bytes))
    return extract_records(rows, currency=currency)


def load_transactions(
    path: str | PathLike[str], *, currency: str | None = None
) -> list[TransactionRecord]:
    """Read a CSV/``.xlsx`` file from disk and parse it.

    The size bound is checked against the file's on-disk size before any
    bytes are read.
    """

    p = Path(path)
    ensure_within_size_limit(p.stat().st_size)
    with p.open("rb") as f:
        head = f.read(8)
        kind = detect_file_kind(p.name, head)
        f.seek(0)
        data = f.read()
    return parse_file(data, kind, currency=currency)


__all__ = [
    "DEFAULT_CATEGORY",
    "DEFAULT_DESCRIPTION",
    "MAX_FILE_BYTES",
    "detect_file_kind",
    "ensure_within_size_limit",
    "extract_records",
    "load_transactions",
    "max_upload_bytes",
    "parse_file",
    "read_csv_rows",
    "read_spreadsheet_rows",
]
