"""Filtering, sorting, paging and counts over collected entries."""
import math
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, field_validator
from ziptag.schemas import ENTRY_COLUMNS, CollectedEntry

STAT_COLUMNS = ("office", "county", "region", "case_status")


def _validate_column(column: str) -> str:
    if column not in ENTRY_COLUMNS:
        raise ValueError(f"Unknown column: {column}")
    return column


class EntryQuery(BaseModel):
    filters: Dict[str, str] = Field(default_factory=dict)
    sort_by: Optional[str] = None
    descending: bool = False
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1)

    @field_validator("filters")
    @classmethod
    def check_filter_columns(cls, value: Dict[str, str]) -> Dict[str, str]:
        for column in value:
            _validate_column(column)
        return value

    @field_validator("sort_by")
    @classmethod
    def check_sort_column(cls, value: Optional[str]) -> Optional[str]:
        return _validate_column(value) if value else None


class QueryPage(BaseModel):
    items: List[CollectedEntry]
    total: int
    page: int
    pages: int
    page_size: int


def _text(entry: CollectedEntry, column: str) -> str:
    value = getattr(entry, column)
    return "" if value is None else str(value)


def filter_entries(entries: Sequence[CollectedEntry], filters: Dict[str, str]) -> List[CollectedEntry]:
    """Case-insensitive substring match on every non-empty filter."""
    result = list(entries)
    for column, needle in filters.items():
        if not needle:
            continue
        needle = needle.lower()
        result = [e for e in result if needle in _text(e, column).lower()]
    return result


def run_query(entries: Sequence[CollectedEntry], query: EntryQuery) -> QueryPage:
    rows = filter_entries(entries, query.filters)

    if query.sort_by:
        rows.sort(key=lambda e: _text(e, query.sort_by), reverse=query.descending)

    total = len(rows)
    pages = max(1, math.ceil(total / query.page_size))
    start = (query.page - 1) * query.page_size
    return QueryPage(
        items=rows[start:start + query.page_size],
        total=total,
        page=query.page,
        pages=pages,
        page_size=query.page_size,
    )


def count_by(entries: Sequence[CollectedEntry], column: str) -> List[Tuple[str, int]]:
    """Counts per value, most frequent first; blank values are counted as 'Unknown'."""
    _validate_column(column)
    counts = Counter(_text(e, column) or "Unknown" for e in entries)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def collection_stats(entries: Sequence[CollectedEntry]) -> Dict[str, object]:
    return {
        "total": len(entries),
        **{
            column: [{"name": name, "value": count} for name, count in count_by(entries, column)]
            for column in STAT_COLUMNS
        },
    }
