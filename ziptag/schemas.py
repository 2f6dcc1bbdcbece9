"""Pydantic models shared by the services and the API."""
from datetime import datetime
from enum import Enum
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from ziptag.errors import ZipNotFoundError

RECORD_VERSION = 2

# Spreadsheet header -> entry field, in export order
SPREADSHEET_COLUMNS = {
    "ZIP Code": "zip_code",
    "Office": "office",
    "Case Name": "case_name",
    "Case #": "case_number",
    "Case Status": "case_status",
    "City": "city",
    "County": "county",
    "Region": "region",
    "Added On": "added_on",
}
ADDRESS_COLUMN = "Address"
REQUIRED_IMPORT_COLUMNS = ("ZIP Code", "City", "County", "Region")

# Entry fields that can be filtered, sorted and counted
ENTRY_COLUMNS = (
    "zip_code",
    "office",
    "case_name",
    "case_number",
    "case_status",
    "city",
    "county",
    "region",
    "address",
    "added_on",
)


def cell_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


class CatalogSource(str, Enum):
    """Partitions of the geographic catalog, valued by their name in the data file."""
    TRUE_LIST = "True list"
    INCORPORATED = "Incorporated Cities"
    CDP = "Census-Designated Places (CDP)"


def source_priority(source: CatalogSource) -> int:
    """Lower sorts first. Only the TrueList is ranked above the rest."""
    return 0 if source is CatalogSource.TRUE_LIST else 1


class Place(BaseModel):
    """A city or census place with the ZIP codes it covers."""
    model_config = ConfigDict(frozen=True)

    city: str
    county: str
    region: Literal["Northern", "Southern"]
    zip_codes: frozenset[str] = Field(default_factory=frozenset)
    source: CatalogSource

    @property
    def key(self) -> tuple[str, str]:
        return (self.city, self.county)

    def sort_key(self) -> tuple:
        return (source_priority(self.source), self.city.casefold(), self.city)


class PlaceOut(BaseModel):
    """Place as returned by the API."""
    city: str
    county: str
    region: str
    source: str

    @classmethod
    def from_place(cls, place: Place) -> "PlaceOut":
        return cls(
            city=place.city,
            county=place.county,
            region=place.region,
            source=place.source.value,
        )


class ResolvedMatch(BaseModel):
    """Catalog places for a ZIP code, TrueList hit kept apart from the rest."""
    model_config = ConfigDict(frozen=True)

    zip_code: str
    preferred: tuple[Place, ...] = ()
    others: tuple[Place, ...] = ()

    def all_places(self) -> list[Place]:
        return [*self.preferred, *self.others]

    def select(self, keys) -> list[Place]:
        """Pick matched places by (city, county), keeping the requested order."""
        by_key = {place.key: place for place in self.all_places()}
        selected = []
        for city, county in keys:
            place = by_key.get((city, county))
            if place is None:
                raise ZipNotFoundError(
                    f"{city} ({county}) is not a match for ZIP code {self.zip_code}"
                )
            selected.append(place)
        return selected


class NameAndAddress(BaseModel):
    name: str
    address: str = ""


class AddressResolution(BaseModel):
    """Result of resolving a free-text address."""
    zip_code: str
    name: str
    address: str
    match: ResolvedMatch


class EntryMetadata(BaseModel):
    """Case details captured when the user confirms one or more places."""
    office: str = ""
    case_name: str = ""
    case_number: str = ""
    case_status: str = ""
    address: Optional[str] = None


def new_entry_id() -> str:
    return uuid4().hex


def timestamp_now() -> str:
    return datetime.now().isoformat(timespec="seconds")


class CollectedEntry(BaseModel):
    """A confirmed row of the collection."""
    id: str = Field(default_factory=new_entry_id)
    zip_code: str
    office: str = ""
    case_name: str = ""
    case_number: str = ""
    case_status: str = ""
    city: str
    county: str
    region: str
    address: Optional[str] = None
    added_on: str = Field(default_factory=timestamp_now)

    @property
    def duplicate_key(self) -> tuple[str, str, str]:
        return (self.zip_code, self.city, self.case_number)

    @classmethod
    def create(cls, zip_code: str, place: Place, meta: EntryMetadata) -> "CollectedEntry":
        return cls(
            zip_code=zip_code,
            office=meta.office,
            case_name=meta.case_name,
            case_number=meta.case_number,
            case_status=meta.case_status,
            city=place.city,
            county=place.county,
            region=place.region,
            address=meta.address or None,
        )

    @classmethod
    def from_row(cls, row: dict) -> "CollectedEntry":
        """Build an entry from a row keyed by spreadsheet headers."""
        values = {
            field: cell_text(row.get(column))
            for column, field in SPREADSHEET_COLUMNS.items()
        }
        if values["zip_code"].isdigit():
            values["zip_code"] = values["zip_code"].zfill(5)
        if not values["added_on"]:
            del values["added_on"]
        address = cell_text(row.get(ADDRESS_COLUMN))
        return cls(**values, address=address or None)

    def to_row(self, include_address: bool = False) -> dict:
        row = {
            column: getattr(self, field)
            for column, field in SPREADSHEET_COLUMNS.items()
        }
        if include_address:
            row[ADDRESS_COLUMN] = self.address or ""
        return row

    def to_record(self) -> dict:
        """Serialize to the current persisted record shape."""
        return {"version": RECORD_VERSION, **self.model_dump(mode="json")}


class ImportMode(str, Enum):
    MERGE = "merge"
    REPLACE = "replace"


class ImportResult(BaseModel):
    mode: ImportMode
    added: int
    skipped: int
    total: int


class CollectionEvent(BaseModel):
    """Published to subscribers after a mutation has been persisted."""
    kind: Literal["loaded", "added", "removed", "cleared", "imported"]
    entries: tuple[CollectedEntry, ...] = ()
    total: int = 0
