"""Static catalog of California places and their ZIP codes."""
import copy
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError
from ziptag.config import get_settings
from ziptag.errors import CatalogError
from ziptag.schemas import CatalogSource, Place

logger = logging.getLogger(__name__)

# Lookup order; the TrueList wins conflicts on (city, county)
SOURCE_ORDER = (
    CatalogSource.TRUE_LIST,
    CatalogSource.INCORPORATED,
    CatalogSource.CDP,
)


def normalize_zip(value) -> str:
    return str(value).strip().zfill(5)


def _parse_place(raw: dict, source: CatalogSource) -> Place:
    if not isinstance(raw, dict):
        raise CatalogError(f"{source.value}: expected an object, got {type(raw).__name__}")
    zip_codes = raw.get("zipCodes", raw.get("zip_codes", []))
    try:
        return Place(
            city=raw["city"],
            county=raw["county"],
            region=raw["region"],
            zip_codes=frozenset(normalize_zip(z) for z in zip_codes),
            source=source,
        )
    except KeyError as e:
        raise CatalogError(f"{source.value}: record is missing {e.args[0]!r}") from e
    except ValidationError as e:
        raise CatalogError(f"{source.value}: invalid record {raw.get('city')!r}: {e}") from e


class GeoCatalog:
    """Read-only catalog partitioned into the TrueList, incorporated cities and CDPs."""

    def __init__(self, partitions: Dict[CatalogSource, Iterable[Place]]):
        self._partitions: Dict[CatalogSource, Tuple[Place, ...]] = {
            source: tuple(partitions.get(source, ())) for source in SOURCE_ORDER
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GeoCatalog":
        if not isinstance(data, dict):
            raise CatalogError("Catalog data must be an object keyed by partition name")
        partitions = {}
        for source in SOURCE_ORDER:
            records = data.get(source.value) or []
            partitions[source] = [_parse_place(raw, source) for raw in records]
        return cls(partitions)

    @classmethod
    def from_file(cls, path) -> "GeoCatalog":
        path = Path(path)
        if not path.exists():
            raise CatalogError(f"Missing catalog at {path}")
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise CatalogError(f"Catalog at {path} is not valid JSON: {e}") from e
        catalog = cls.from_dict(data)
        logger.info(
            "Loaded catalog from %s: %s",
            path,
            ", ".join(f"{s.value}={len(catalog.partition(s))}" for s in SOURCE_ORDER),
        )
        return catalog

    def partition(self, source: CatalogSource) -> Tuple[Place, ...]:
        return self._partitions[source]

    def places(self) -> List[Place]:
        """All places, with non-TrueList duplicates of a TrueList (city, county) dropped."""
        true_list = self._partitions[CatalogSource.TRUE_LIST]
        true_keys = {place.key for place in true_list}
        merged = list(true_list)
        for source in SOURCE_ORDER[1:]:
            merged.extend(p for p in self._partitions[source] if p.key not in true_keys)
        return merged

    def contains_zip(self, zip_code: str) -> bool:
        return any(
            zip_code in place.zip_codes
            for source in SOURCE_ORDER
            for place in self._partitions[source]
        )

    def sizes(self) -> Dict[str, int]:
        return {source.value: len(self._partitions[source]) for source in SOURCE_ORDER}


@lru_cache()
def load_catalog(path: Optional[str] = None) -> GeoCatalog:
    """Load the catalog once per process."""
    if path is None:
        path = str(get_settings().catalog_path)
    return GeoCatalog.from_file(path)


def remove_duplicate_zip_codes(data: dict) -> dict:
    """
    Drop ZIP codes shared by repeated (city, county) records.

    Scans the incorporated cities, then the CDPs. When a (city, county) key
    shows up again, the ZIP codes it shares with the new record are removed
    from the previous record. Returns a new structure; ``data`` is untouched.
    """
    cleaned = copy.deepcopy(data)
    seen: Dict[str, Tuple[str, int, set]] = {}

    for source in (CatalogSource.INCORPORATED, CatalogSource.CDP):
        records = cleaned.get(source.value) or []
        for index, record in enumerate(records):
            key = f"{record['city']}|{record['county']}"
            current_zips = set(record.get("zipCodes", []))

            if key in seen:
                prev_source, prev_index, prev_zips = seen[key]
                overlap = current_zips & prev_zips
                if overlap:
                    prev_record = cleaned[prev_source][prev_index]
                    prev_record["zipCodes"] = [
                        z for z in prev_record["zipCodes"] if z not in overlap
                    ]

            seen[key] = (source.value, index, current_zips)

    return cleaned
