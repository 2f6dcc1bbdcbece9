"""Test spreadsheet import and export."""
import io

import pandas as pd
import pytest

from ziptag.errors import ExportError, ImportShapeError
from ziptag.schemas import CollectedEntry
from ziptag.services.spreadsheet_service import export_rows, missing_columns, read_rows

BASE_COLUMNS = [
    "ZIP Code", "Office", "Case Name", "Case #", "Case Status",
    "City", "County", "Region", "Added On",
]


def _xlsx(rows, columns=None) -> bytes:
    buffer = io.BytesIO()
    pd.DataFrame(rows, columns=columns).to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


def _read_export(content: bytes) -> pd.DataFrame:
    return pd.read_excel(io.BytesIO(content), dtype=str, engine="openpyxl").fillna("")


def test_add_all_then_export_shares_case_columns(collector, resolver, meta):
    match = resolver.resolve("93012")
    collector.add_all(match.zip_code, match.all_places(), meta)

    df = _read_export(export_rows(collector.entries))

    assert list(df.columns) == BASE_COLUMNS
    assert len(df) == 2
    shared = df[["Office", "Case Name", "Case #", "Case Status"]].drop_duplicates()
    assert len(shared) == 1
    assert shared.iloc[0]["Case #"] == "ADJ1001"
    assert list(df["City"]) == ["Camarillo", "Santa Rosa Valley"]


def test_address_column_only_when_present():
    plain = CollectedEntry(zip_code="93023", city="Ojai", county="Ventura", region="Southern")
    with_address = plain.model_copy(update={"id": "x", "address": "12 Grand Ave"})

    assert list(_read_export(export_rows([plain])).columns) == BASE_COLUMNS

    df = _read_export(export_rows([plain, with_address]))
    assert list(df.columns) == BASE_COLUMNS + ["Address"]
    assert list(df["Address"]) == ["", "12 Grand Ave"]


def test_export_uses_sheet_name():
    entry = CollectedEntry(zip_code="93023", city="Ojai", county="Ventura", region="Southern")
    sheets = pd.read_excel(io.BytesIO(export_rows([entry], "Selected Data")), sheet_name=None)
    assert list(sheets) == ["Selected Data"]


def test_export_nothing_fails():
    with pytest.raises(ExportError):
        export_rows([])


def test_read_rows_from_xlsx():
    content = _xlsx([
        {"ZIP Code": 93012, "City": "Camarillo", "County": "Ventura", "Region": "Southern",
         "Case #": "ADJ1", "Added On": "3/14/2025, 10:22:01 AM"},
        {"ZIP Code": None, "City": None, "County": None, "Region": None, "Case #": None, "Added On": None},
        {"ZIP Code": "2134", "City": "Allston", "County": "Suffolk", "Region": "Northern",
         "Case #": None, "Added On": None},
    ])
    entries = read_rows(content, "upload.xlsx")

    assert [e.zip_code for e in entries] == ["93012", "02134"]
    assert entries[0].added_on == "3/14/2025, 10:22:01 AM"
    assert entries[0].case_number == "ADJ1"
    assert entries[1].case_number == ""
    assert entries[1].added_on


def test_read_rows_from_csv():
    content = (
        "ZIP Code,City,County,Region,Office,Address\n"
        "02134,Allston,Suffolk,Northern,Robin Jacobs,9 Elm St\n"
    ).encode()
    entries = read_rows(content, "upload.CSV")
    assert entries[0].zip_code == "02134"
    assert entries[0].office == "Robin Jacobs"
    assert entries[0].address == "9 Elm St"


def test_missing_columns_rejects_whole_file():
    content = _xlsx([{"ZIP Code": "93012", "City": "Camarillo", "Region": "Southern"}])
    with pytest.raises(ImportShapeError) as exc_info:
        read_rows(content, "upload.xlsx")
    assert exc_info.value.missing_columns == ("County",)


def test_header_whitespace_is_ignored():
    assert missing_columns([" ZIP Code", "City ", "County", "Region"]) == []


def test_unreadable_files_are_shape_errors():
    with pytest.raises(ImportShapeError):
        read_rows(b"definitely not a workbook", "upload.xlsx")
    with pytest.raises(ImportShapeError):
        read_rows(b"whatever", "upload.pdf")


def test_exported_file_imports_back(collector, resolver, meta):
    match = resolver.resolve("93023")
    collector.add_all(match.zip_code, match.all_places(), meta)

    entries = read_rows(export_rows(collector.entries), "California_Zip_Data.xlsx")

    assert [e.duplicate_key for e in entries] == [e.duplicate_key for e in collector.entries]
    assert [e.added_on for e in entries] == [e.added_on for e in collector.entries]


def test_rows_without_a_usable_zip_reject_the_file():
    content = (
        "ZIP Code,City,County,Region\n"
        "93012,Camarillo,Ventura,Southern\n"
        ",Nowhere,Ventura,Southern\n"
        "abc,Foo,Ventura,Southern\n"
    ).encode()
    with pytest.raises(ImportShapeError) as exc_info:
        read_rows(content, "upload.csv")
    assert "rows 3, 4" in str(exc_info.value)


def test_zip_plus_four_is_cut_to_five_digits():
    content = (
        "ZIP Code,City,County,Region\n"
        "93012-0001,Camarillo,Ventura,Southern\n"
    ).encode()
    assert [e.zip_code for e in read_rows(content, "upload.csv")] == ["93012"]


def test_from_row_only_pads_digits():
    entry = CollectedEntry.from_row({"ZIP Code": "abc", "City": "Foo", "County": "X", "Region": "Southern"})
    assert entry.zip_code == "abc"


def test_xls_files_are_read_with_xlrd(monkeypatch):
    seen = {}

    def fake_read_excel(buffer, **kwargs):
        seen.update(kwargs)
        return pd.DataFrame([{"ZIP Code": "2134", "City": "Allston", "County": "Suffolk", "Region": "Northern"}])

    monkeypatch.setattr(pd, "read_excel", fake_read_excel)
    entries = read_rows(b"legacy", "upload.XLS")

    assert seen["engine"] == "xlrd"
    assert entries[0].zip_code == "02134"


def test_corrupt_xls_is_a_shape_error():
    with pytest.raises(ImportShapeError):
        read_rows(b"definitely not a workbook", "upload.xls")
