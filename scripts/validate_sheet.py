"""Validate an entries spreadsheet before importing it."""
import sys
from pathlib import Path
from typing import List, Tuple

sys.path.append(str(Path(__file__).parent.parent))

from ziptag.errors import ImportShapeError
from ziptag.schemas import ADDRESS_COLUMN, SPREADSHEET_COLUMNS
from ziptag.services.spreadsheet_service import read_frame, rows_from_frame

KNOWN_COLUMNS = [*SPREADSHEET_COLUMNS, ADDRESS_COLUMN]


def validate_sheet(file_path: str) -> Tuple[bool, List[str]]:
    """
    Validate spreadsheet structure and ZIP values.
    Returns (is_valid, list_of_issues)
    """
    issues = []
    path = Path(file_path)

    try:
        df = read_frame(path.read_bytes(), path.name)
        print(f"✅ Successfully read {path.name} with {len(df)} rows")

        extra_cols = set(df.columns) - set(KNOWN_COLUMNS)
        if extra_cols:
            print(f"⚠️  Extra columns found (will be ignored): {extra_cols}")

        entries = rows_from_frame(df)
    except ImportShapeError as e:
        issues.append(str(e))
        return False, issues
    except OSError as e:
        issues.append(f"Failed to read file: {e}")
        return False, issues

    print("\n📊 Column Analysis:")
    for col in KNOWN_COLUMNS:
        if col in df.columns:
            blank_count = (df[col].astype(str).str.strip() == "").sum()
            print(f"  {col}:")
            print(f"    - Blanks: {blank_count}/{len(df)}")
            print(f"    - Unique values: {df[col].nunique()}")

    keys = [e.duplicate_key for e in entries]
    duplicates = len(keys) - len(set(keys))
    if duplicates:
        issues.append(f"Found {duplicates} duplicate ZIP/City/Case # rows")

    return len(issues) == 0, issues


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python validate_sheet.py <path_to_xlsx_or_csv>")
        sys.exit(1)

    is_valid, issues = validate_sheet(sys.argv[1])

    if is_valid:
        print("\n✅ Spreadsheet validation successful!")
    else:
        print("\n❌ Spreadsheet validation failed:")
        for issue in issues:
            print(f"  - {issue}")
        sys.exit(1)
