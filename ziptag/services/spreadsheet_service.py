"""Spreadsheet import and export for collected entries."""
import io
import logging
import re
import zipfile
from pathlib import Path
from typing import Iterable, List, Sequence

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException
from xlrd import XLRDError
from ziptag.errors import ExportError, ImportShapeError
from ziptag.schemas import (
    ADDRESS_COLUMN,
    REQUIRED_IMPORT_COLUMNS,
    SPREADSHEET_COLUMNS,
    CollectedEntry,
)
from ziptag.services.zip_resolver import validate_zip

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
LEGACY_EXCEL_SUFFIXES = {".xls"}
CSV_SUFFIXES = {".csv"}
EXCEL_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_FLOAT_ZIP = re.compile(r"^(\d+)\.0+$")


def missing_columns(columns: Iterable[str]) -> List[str]:
    present = {str(c).strip() for c in columns}
    return [c for c in REQUIRED_IMPORT_COLUMNS if c not in present]


def read_frame(content: bytes, filename: str) -> pd.DataFrame:
    """Load the first sheet (or the CSV) with every cell as text."""
    suffix = Path(filename or "").suffix.lower()
    buffer = io.BytesIO(content)
    try:
        if suffix in CSV_SUFFIXES:
            df = pd.read_csv(buffer, dtype=str, keep_default_na=False)
        elif suffix in EXCEL_SUFFIXES:
            df = pd.read_excel(buffer, sheet_name=0, dtype=str, engine="openpyxl")
        elif suffix in LEGACY_EXCEL_SUFFIXES:
            df = pd.read_excel(buffer, sheet_name=0, dtype=str, engine="xlrd")
        else:
            raise ImportShapeError(f"Unsupported file type: {suffix or filename!r}")
    except ImportShapeError:
        raise
    except (ValueError, OSError, zipfile.BadZipFile, InvalidFileException, XLRDError) as e:
        logger.warning("Could not read uploaded file %r: %s", filename, e)
        raise ImportShapeError("Error processing the file. Please check the format.") from e

    df.columns = [str(col).strip() for col in df.columns]
    return df.fillna("")


def rows_from_frame(df: pd.DataFrame) -> List[CollectedEntry]:
    """Validate the header and turn every non-blank row into an entry."""
    missing = missing_columns(df.columns)
    if missing:
        logger.warning("Rejected upload, missing columns: %s", ", ".join(missing))
        raise ImportShapeError(
            "Uploaded file doesn't match the required format "
            f"(missing: {', '.join(missing)})",
            missing_columns=missing,
        )

    entries = []
    bad_rows = []
    # Sheet row numbers start at 2, below the header
    for number, row in enumerate(df.to_dict(orient="records"), start=2):
        if not any(str(value).strip() for value in row.values()):
            continue
        zip_code = str(row.get("ZIP Code", "")).strip()
        float_zip = _FLOAT_ZIP.match(zip_code)
        if float_zip:
            zip_code = float_zip.group(1)
        if zip_code.isdigit():
            zip_code = zip_code.zfill(5)
        if not validate_zip(zip_code):
            bad_rows.append(number)
            continue
        row["ZIP Code"] = zip_code[:5]
        entries.append(CollectedEntry.from_row(row))

    if bad_rows:
        logger.warning("Rejected upload, invalid ZIP codes in rows: %s", bad_rows)
        shown = ", ".join(str(n) for n in bad_rows[:10])
        more = f" and {len(bad_rows) - 10} more" if len(bad_rows) > 10 else ""
        raise ImportShapeError(f"Invalid or missing ZIP Code in rows {shown}{more}")
    return entries


def read_rows(content: bytes, filename: str) -> List[CollectedEntry]:
    entries = rows_from_frame(read_frame(content, filename))
    logger.info("Read %d rows from %s", len(entries), filename)
    return entries


def export_columns(entries: Sequence[CollectedEntry]) -> List[str]:
    columns = list(SPREADSHEET_COLUMNS)
    if any(entry.address for entry in entries):
        columns.append(ADDRESS_COLUMN)
    return columns


def export_rows(entries: Sequence[CollectedEntry], sheet_name: str = "ZipCodeData") -> bytes:
    """Write entries to an .xlsx workbook; Address is added only when some row has one."""
    if not entries:
        raise ExportError("No data to export")

    columns = export_columns(entries)
    include_address = ADDRESS_COLUMN in columns
    df = pd.DataFrame(
        [entry.to_row(include_address=include_address) for entry in entries],
        columns=columns,
    )

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    logger.info("Exported %d rows", len(df))
    return buffer.getvalue()
