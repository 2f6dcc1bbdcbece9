"""Collected entries router."""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile
from pydantic import BaseModel, Field, model_validator
from ziptag.config import Settings, get_settings
from ziptag.dependencies import get_collector, get_resolver
from ziptag.errors import (
    AmbiguousAddressError,
    ConfirmationRequiredError,
    ExportError,
    ImportShapeError,
    InvalidZipError,
    StorageError,
    ZipNotFoundError,
)
from ziptag.schemas import CollectedEntry, EntryMetadata, ImportMode, ImportResult
from ziptag.services import spreadsheet_service
from ziptag.services.entry_collector import EntryCollector
from ziptag.services.entry_query import EntryQuery, QueryPage, collection_stats, run_query
from ziptag.services.zip_resolver import ZipResolver, strip_name_prefix

router = APIRouter()


class PlaceRef(BaseModel):
    city: str
    county: str


class AddEntriesRequest(BaseModel):
    """Request model for confirming one or more matched places."""
    zip_code: Optional[str] = Field(None, description="ZIP code searched directly")
    address: Optional[str] = Field(None, description="Full name and address searched instead of a ZIP")
    places: Optional[List[PlaceRef]] = Field(
        None, description="Places to add; omit to add every match"
    )
    metadata: EntryMetadata

    @model_validator(mode="after")
    def one_query(self):
        if bool(self.zip_code) == bool(self.address):
            raise ValueError("Provide either zip_code or address")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "zip_code": "93012",
                "places": [{"city": "Camarillo", "county": "Ventura"}],
                "metadata": {
                    "office": "Law office of Robin Jacobs",
                    "case_name": "Doe v. Acme",
                    "case_number": "ADJ1234567",
                    "case_status": "Open"
                }
            }
        }
    }


class AddEntriesResponse(BaseModel):
    added: List[CollectedEntry]
    total: int


class ExportRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1, description="Entry ids to export")


def _error(status_code: int, e: Exception) -> HTTPException:
    return HTTPException(status_code=status_code, detail=str(e))


def _excel_response(content: bytes, file_name: str) -> Response:
    return Response(
        content=content,
        media_type=spreadsheet_service.EXCEL_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.get("", response_model=QueryPage)
def list_entries(
    zip_code: Optional[str] = Query(None),
    office: Optional[str] = Query(None),
    case_name: Optional[str] = Query(None),
    case_number: Optional[str] = Query(None),
    case_status: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    county: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, description="Entry field to sort on"),
    descending: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    collector: EntryCollector = Depends(get_collector),
    settings: Settings = Depends(get_settings)
):
    """
    List collected entries.

    Column filters are case-insensitive substring matches. Results are paged
    (1-based) and optionally sorted by one field.
    """
    filters = {
        "zip_code": zip_code,
        "office": office,
        "case_name": case_name,
        "case_number": case_number,
        "case_status": case_status,
        "city": city,
        "county": county,
        "region": region,
    }
    try:
        query = EntryQuery(
            filters={k: v for k, v in filters.items() if v},
            sort_by=sort_by,
            descending=descending,
            page=page,
            page_size=min(page_size or settings.default_page_size, settings.max_page_size),
        )
    except ValueError as e:
        raise _error(400, e)
    return run_query(collector.entries, query)


@router.get("/stats")
def get_stats(collector: EntryCollector = Depends(get_collector)):
    """Entry counts by office, county, region and case status."""
    return collection_stats(collector.entries)


@router.get("/values/{column}")
def get_unique_values(column: str, collector: EntryCollector = Depends(get_collector)):
    """Distinct non-empty values of one field, for filter dropdowns."""
    try:
        values = collector.unique_values(column)
    except ValueError as e:
        raise _error(404, e)
    return {"column": column, "values": values}


@router.get("/export")
def export_all(
    collector: EntryCollector = Depends(get_collector),
    settings: Settings = Depends(get_settings)
):
    """Download the whole collection as an Excel workbook."""
    try:
        content = spreadsheet_service.export_rows(collector.entries, settings.export_sheet_name)
    except ExportError as e:
        raise _error(400, e)
    return _excel_response(content, settings.export_file_name)


@router.post("/export")
def export_selected(
    request: ExportRequest,
    collector: EntryCollector = Depends(get_collector),
    settings: Settings = Depends(get_settings)
):
    """Download the selected entries, in collection order."""
    wanted = set(request.ids)
    selected = [entry for entry in collector.entries if entry.id in wanted]
    try:
        content = spreadsheet_service.export_rows(selected, settings.export_sheet_name)
    except ExportError as e:
        raise _error(400, e)
    return _excel_response(content, "selected_rows.xlsx")


@router.post("", response_model=AddEntriesResponse, status_code=201)
def add_entries(
    request: AddEntriesRequest,
    resolver: ZipResolver = Depends(get_resolver),
    collector: EntryCollector = Depends(get_collector)
):
    """
    Confirm matched places as entries.

    The ZIP (or address) is resolved again so every entry carries a ZIP that
    matched the catalog. In address mode the entry address defaults to the
    input without the leading name.
    """
    metadata = request.metadata
    try:
        if request.address:
            resolution = resolver.resolve_address(request.address)
            match = resolution.match
            if metadata.address is None:
                metadata = metadata.model_copy(
                    update={"address": strip_name_prefix(request.address.strip(), resolution.name)}
                )
        else:
            match = resolver.resolve(request.zip_code)

        if request.places is None:
            added = collector.add_all(match.zip_code, match.all_places(), metadata)
        else:
            places = match.select([(p.city, p.county) for p in request.places])
            if len(places) == 1:
                added = [collector.add(match.zip_code, places[0], metadata)]
            else:
                added = collector.add_all(match.zip_code, places, metadata)
    except AmbiguousAddressError as e:
        raise _error(422, e)
    except InvalidZipError as e:
        raise _error(400, e)
    except ZipNotFoundError as e:
        raise _error(404, e)
    except StorageError as e:
        raise _error(503, e)

    return AddEntriesResponse(added=added, total=len(collector))


@router.post("/import", response_model=ImportResult)
def import_entries(
    file: UploadFile = File(..., description="Excel (.xlsx, .xls) or CSV file"),
    mode: ImportMode = Query(ImportMode.MERGE),
    confirm: bool = Query(False, description="Required for mode=replace"),
    collector: EntryCollector = Depends(get_collector)
):
    """
    Import entries from a spreadsheet.

    The header must include `ZIP Code, City, County, Region`. `merge` keeps
    every existing entry and skips duplicate rows; `replace` discards the
    collection and needs `confirm=true`.
    """
    content = file.file.read()
    try:
        rows = spreadsheet_service.read_rows(content, file.filename)
        return collector.import_entries(rows, mode, confirmed=confirm)
    except ImportShapeError as e:
        raise _error(400, e)
    except ConfirmationRequiredError as e:
        raise _error(409, e)
    except StorageError as e:
        raise _error(503, e)


@router.get("/{entry_id}", response_model=CollectedEntry)
def get_entry(entry_id: str, collector: EntryCollector = Depends(get_collector)):
    entry = collector.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Entry {entry_id} not found")
    return entry


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: str,
    confirm: bool = Query(False),
    collector: EntryCollector = Depends(get_collector)
):
    """Delete one entry. Deleting an unknown id is a no-op."""
    try:
        removed = collector.remove_entry(entry_id, confirmed=confirm)
    except ConfirmationRequiredError as e:
        raise _error(409, e)
    except StorageError as e:
        raise _error(503, e)
    return {"removed": removed, "total": len(collector)}


@router.delete("")
def clear_entries(
    confirm: bool = Query(False),
    collector: EntryCollector = Depends(get_collector)
):
    """Delete every entry. Cannot be undone."""
    try:
        collector.clear(confirmed=confirm)
    except ConfirmationRequiredError as e:
        raise _error(409, e)
    except StorageError as e:
        raise _error(503, e)
    return {"cleared": True, "total": 0}
