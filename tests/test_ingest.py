from io import BytesIO
from pathlib import Path

import pytest
from openpyxl import Workbook

from finance_advisor import errors
from finance_advisor.ingest import (
    detect_file_kind,
    extract_records,
    load_transactions,
    max_upload_bytes,
    parse_file,
    read_csv_rows,
)
from finance_advisor.models import TransactionRecord

HEADER = "Date,Description,Amount,Category\n"


def _csv(*lines: str) -> bytes:
    return (HEADER + "\n".join(lines) + "\n").encode("utf-8")


def _xlsx(rows: list[list[object]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ---- CSV ---------------------------------------------------------------------


def test_parse_csv_basic() -> None:
    data = _csv(
        "2024-01-15,Salary,5000.00,Income",
        '2024-01-16,"Groceries, weekly",-120.50,Food',
    )
    records = parse_file(data, "csv")
    assert records == [
        TransactionRecord("2024-01-15", "Salary", 5000.0, "Income"),
        TransactionRecord("2024-01-16", "Groceries, weekly", -120.5, "Food"),
    ]


def test_csv_defaults_and_zero_filter() -> None:
    data = _csv(
        ",,-10,",
        "2024-01-02,Refund,0,Other",
        "2024-01-03,Blank amount,,Other",
        "2024-01-04,Coffee,-3.5,Food",
    )
    records = parse_file(data, "csv")
    assert [r.amount for r in records] == [-10.0, -3.5]
    first = records[0]
    assert first.date == "2024-01-01"
    assert first.description == "Transaction"
    assert first.category == "Other"


def test_placeholder_date_follows_row_number() -> None:
    data = _csv("2024-03-01,A,1,X", "2024-03-02,B,2,X", ",C,3,X")
    assert parse_file(data, "csv")[2].date == "2024-01-03"


def test_csv_bom_and_blank_lines() -> None:
    data = b"\xef\xbb\xbf" + HEADER.encode() + b"\n2024-01-01,Pay,10,Income\n\n"
    records = parse_file(data, "csv")
    assert len(records) == 1
    assert records[0].date == "2024-01-01"


def test_csv_cp1252_fallback() -> None:
    data = (HEADER + "2024-01-01,Caf\xe9,-4,Food\n").encode("cp1252")
    assert parse_file(data, "csv")[0].description == "Café"


def test_read_csv_rows_strips_quotes_and_space() -> None:
    rows = read_csv_rows(b" a , 'b' ,c\n\n,,\n1,2,3\n")
    assert rows == [["a", "b", "c"], ["1", "2", "3"]]


def test_rupiah_amounts_are_sniffed() -> None:
    data = _csv(
        "2024-01-01,Gaji,Rp 5.000.000,Income",
        "2024-01-02,Makan,-Rp 150.000,Food",
    )
    assert [r.amount for r in parse_file(data, "csv")] == [5_000_000.0, -150_000.0]


def test_explicit_currency_hint() -> None:
    data = _csv("2024-01-01,Miete,\"-1.234,56\",Wohnen")
    assert parse_file(data, "csv", currency="EUR")[0].amount == pytest.approx(-1234.56)


# ---- Structural errors ---------------------------------------------------------


def test_empty_file() -> None:
    with pytest.raises(errors.EmptyFileError):
        parse_file(b"", "csv")
    with pytest.raises(errors.EmptyFileError):
        parse_file(HEADER.encode(), "csv")


def test_short_header() -> None:
    with pytest.raises(errors.InvalidHeaderError) as ei:
        parse_file(b"Date,Amount\n2024-01-01,5\n", "csv")
    assert ei.value.columns == 2


def test_incomplete_row_reports_data_row_number() -> None:
    data = _csv("2024-01-01,Pay,10,Income", "2024-01-02,Short,5")
    with pytest.raises(errors.IncompleteRowError) as ei:
        parse_file(data, "csv")
    assert ei.value.row == 2
    assert "Row 2" in str(ei.value)


def test_invalid_amount() -> None:
    data = _csv("2024-01-01,Pay,ten dollars,Income")
    with pytest.raises(errors.InvalidAmountError) as ei:
        parse_file(data, "csv")
    assert ei.value.row == 1
    assert ei.value.raw_value == "ten dollars"


def test_all_zero_rows() -> None:
    with pytest.raises(errors.NoValidRowsError):
        parse_file(_csv("2024-01-01,Nothing,0,Other", "2024-01-02,Blank,,Other"), "csv")


def test_errors_share_a_base_class() -> None:
    with pytest.raises(errors.IngestError):
        parse_file(b"", "csv")
    assert issubclass(errors.IngestError, ValueError)


def test_size_limit_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FINANCE_ADVISOR_MAX_UPLOAD_BYTES", "16")
    assert max_upload_bytes() == 16
    with pytest.raises(errors.FileTooLargeError) as ei:
        parse_file(_csv("2024-01-01,Pay,10,Income"), "csv")
    assert ei.value.limit == 16


def test_size_limit_ignores_bad_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FINANCE_ADVISOR_MAX_UPLOAD_BYTES", "lots")
    assert max_upload_bytes() == 10 * 1024 * 1024


# ---- File kind -----------------------------------------------------------------


def test_detect_file_kind() -> None:
    assert detect_file_kind("a.csv") == "csv"
    assert detect_file_kind("A.XLSX") == "spreadsheet"
    assert detect_file_kind("export.csv", b"PK\x03\x04rest") == "spreadsheet"
    for name, head in [
        ("a.xls", b""),
        ("a.xlsx", b"\xd0\xcf\x11\xe0\xa1\xb1"),
        ("a.xlsx", b"date,des"),
        ("a.csv", b"\x00\x01"),
        ("notes.txt", b""),
        (None, b""),
    ]:
        with pytest.raises(errors.UnsupportedFileTypeError):
            detect_file_kind(name, head)


def test_unsupported_message_names_accepted_formats() -> None:
    with pytest.raises(errors.UnsupportedFileTypeError) as ei:
        detect_file_kind("report.pdf")
    assert "'report.pdf'" in str(ei.value)
    assert "CSV" in str(ei.value)


# ---- Spreadsheets --------------------------------------------------------------


def test_parse_xlsx() -> None:
    from datetime import datetime

    data = _xlsx(
        [
            ["Date", "Description", "Amount", "Category"],
            [datetime(2024, 1, 15), "Salary", 5000, "Income"],
            ["2024-01-16", "Coffee", "-4.50", "Food"],
            [None, None, -20, None],
            [None, None, None, None],
        ]
    )
    records = parse_file(data, "spreadsheet")
    assert records == [
        TransactionRecord("2024-01-15", "Salary", 5000.0, "Income"),
        TransactionRecord("2024-01-16", "Coffee", -4.5, "Food"),
        TransactionRecord("2024-01-03", "Transaction", -20.0, "Other"),
    ]


def test_xlsx_blank_trailing_cells_are_blank_fields() -> None:
    data = _xlsx([["Date", "Description", "Amount", "Category"], ["2024-01-01", "Pay", 10]])
    assert parse_file(data, "spreadsheet")[0].category == "Other"


def test_corrupt_xlsx() -> None:
    with pytest.raises(errors.UnsupportedFileTypeError):
        parse_file(b"PK\x03\x04 definitely not a workbook", "spreadsheet")


# ---- From disk ---------------------------------------------------------------


def test_load_transactions_from_path(tmp_path: Path) -> None:
    p = tmp_path / "june.csv"
    p.write_bytes(_csv("2024-06-01,Pay,100,Income", "2024-06-02,Bus,-2.75,Transport"))
    records = load_transactions(p)
    assert len(records) == 2
    assert records[1].category == "Transport"


def test_load_transactions_xlsx_from_path(tmp_path: Path) -> None:
    p = tmp_path / "june.xlsx"
    p.write_bytes(_xlsx([["d", "desc", "amt", "cat"], ["2024-06-01", "Pay", 100, "Income"]]))
    assert load_transactions(p)[0].amount == 100.0


def test_extract_records_accepts_extra_columns() -> None:
    rows = [["d", "desc", "amt", "cat", "memo"], ["2024-01-01", "Pay", "10", "Income", "x"]]
    assert extract_records(rows)[0].amount == 10.0


def test_exponent_amount_cells_from_spreadsheet_exports() -> None:
    data = _csv("2024-01-01,Bonus,1.5E+07,Income", "2024-01-02,Fee,-1.5e3,Bank")
    assert [r.amount for r in parse_file(data, "csv")] == [15_000_000.0, -1500.0]
