"""The persisted collection of confirmed ZIP entries."""
import json
import logging
import threading
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError
from ziptag.errors import ConfirmationRequiredError, InvalidZipError, StorageError
from ziptag.schemas import (
    ENTRY_COLUMNS,
    RECORD_VERSION,
    CollectedEntry,
    CollectionEvent,
    EntryMetadata,
    ImportMode,
    ImportResult,
    Place,
    new_entry_id,
)
from ziptag.services.entry_store import CollectionStore
from ziptag.services.zip_resolver import normalize_query_zip

logger = logging.getLogger(__name__)

Listener = Callable[[CollectionEvent], None]


def migrate_record(raw: dict) -> CollectedEntry:
    """
    Upgrade a persisted record to the current entry shape.

    Version 1 records are the legacy rows keyed by spreadsheet headers
    ("ZIP Code", "Case #", ...) with no id and no version tag. Version 2
    records are ``CollectedEntry.to_record()`` output.
    """
    if not isinstance(raw, dict):
        raise StorageError(f"Invalid record in storage: {raw!r}")

    version = raw.get("version")
    try:
        if version == RECORD_VERSION:
            fields = {k: v for k, v in raw.items() if k != "version"}
            return CollectedEntry.model_validate(fields)
        if version is None and "ZIP Code" in raw:
            return CollectedEntry.from_row(raw)
    except ValidationError as e:
        raise StorageError(f"Invalid record in storage: {e}") from e
    raise StorageError(f"Unsupported record version: {version!r}")


class EntryCollector:
    """
    Append-only list of confirmed entries, written through to a store.

    Every mutation serializes the whole collection, writes it, and only then
    swaps the in-memory list and notifies subscribers. A failed write leaves
    the collection as it was.
    """

    def __init__(self, store: CollectionStore, collection_name: str = "californiaZipData"):
        self.store = store
        self.collection_name = collection_name
        self._entries: Tuple[CollectedEntry, ...] = ()
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    def load(self) -> int:
        """Read the persisted collection, migrating old record shapes."""
        with self._lock:
            payload = self.store.read(self.collection_name)
            if not payload:
                entries = ()
            else:
                try:
                    records = json.loads(payload)
                except json.JSONDecodeError as e:
                    raise StorageError("Invalid data format in storage") from e
                if not isinstance(records, list):
                    raise StorageError("Invalid data format in storage")
                entries = tuple(migrate_record(raw) for raw in records)

            self._entries = entries
            logger.info("Loaded %d entries from %r", len(entries), self.collection_name)
            self._notify(CollectionEvent(kind="loaded", total=len(entries)))
            return len(entries)

    @property
    def entries(self) -> Tuple[CollectedEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Optional[CollectedEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; the returned callable unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def add(self, zip_code: str, place: Place, meta: EntryMetadata) -> CollectedEntry:
        return self.add_all(zip_code, [place], meta)[0]

    def add_all(
        self,
        zip_code: str,
        places: Sequence[Place],
        meta: EntryMetadata,
    ) -> List[CollectedEntry]:
        """Create one entry per place, all sharing the same case metadata."""
        zip_code = normalize_query_zip(zip_code)
        for place in places:
            if zip_code not in place.zip_codes:
                raise InvalidZipError(f"{place.city} does not cover ZIP code {zip_code}")

        new_entries = [CollectedEntry.create(zip_code, place, meta) for place in places]
        if not new_entries:
            return []

        with self._lock:
            self._commit(
                self._entries + tuple(new_entries),
                CollectionEvent(kind="added", entries=tuple(new_entries)),
            )
        logger.info(
            "Added %d entries for ZIP %s (case %r)",
            len(new_entries), zip_code, meta.case_number,
        )
        return new_entries

    def import_entries(
        self,
        entries: Iterable[CollectedEntry],
        mode: ImportMode = ImportMode.MERGE,
        *,
        confirmed: bool = False,
    ) -> ImportResult:
        """
        Bring in externally sourced rows.

        Replace swaps the whole collection and must be confirmed. Merge keeps
        every existing row and appends imported rows whose (ZIP, city, case #)
        is not already present, first occurrence winning.
        """
        mode = ImportMode(mode)
        incoming = list(entries)

        if mode is ImportMode.REPLACE and not confirmed:
            raise ConfirmationRequiredError(
                "Replacing the collection discards all existing entries; confirm to continue"
            )

        with self._lock:
            if mode is ImportMode.REPLACE:
                base: Tuple[CollectedEntry, ...] = ()
                accepted = self._with_unique_ids(incoming, set())
                skipped = 0
            else:
                base = self._entries
                seen_keys = {entry.duplicate_key for entry in base}
                kept = []
                for entry in incoming:
                    if entry.duplicate_key in seen_keys:
                        continue
                    seen_keys.add(entry.duplicate_key)
                    kept.append(entry)
                accepted = self._with_unique_ids(kept, {entry.id for entry in base})
                skipped = len(incoming) - len(kept)

            self._commit(
                base + tuple(accepted),
                CollectionEvent(kind="imported", entries=tuple(accepted)),
            )
            total = len(self._entries)

        if skipped:
            logger.info("Skipped %d duplicate entries on import", skipped)
        logger.info("Imported %d entries (%s), collection now %d", len(accepted), mode.value, total)
        return ImportResult(mode=mode, added=len(accepted), skipped=skipped, total=total)

    def remove_entry(self, entry_id: str, *, confirmed: bool = False) -> bool:
        """Delete one entry. Unknown ids are ignored and return False."""
        if not confirmed:
            raise ConfirmationRequiredError("Confirm to delete this entry")

        with self._lock:
            removed = [entry for entry in self._entries if entry.id == entry_id]
            if not removed:
                return False
            remaining = tuple(entry for entry in self._entries if entry.id != entry_id)
            self._commit(remaining, CollectionEvent(kind="removed", entries=tuple(removed)))

        logger.info("Removed entry %s", entry_id)
        return True

    def clear(self, *, confirmed: bool = False) -> None:
        if not confirmed:
            raise ConfirmationRequiredError("Are you sure you want to clear all data? Confirm to continue")

        with self._lock:
            self._commit((), CollectionEvent(kind="cleared"))
        logger.info("Cleared collection %r", self.collection_name)

    def unique_values(self, column: str) -> List[str]:
        if column not in ENTRY_COLUMNS:
            raise ValueError(f"Unknown column: {column}")
        values = {getattr(entry, column) for entry in self._entries}
        return sorted(str(v) for v in values if v)

    @staticmethod
    def _with_unique_ids(entries: List[CollectedEntry], taken: set) -> List[CollectedEntry]:
        result = []
        for entry in entries:
            if entry.id in taken:
                entry = entry.model_copy(update={"id": new_entry_id()})
            taken.add(entry.id)
            result.append(entry)
        return result

    def _commit(self, entries: Tuple[CollectedEntry, ...], event: CollectionEvent) -> None:
        payload = json.dumps([entry.to_record() for entry in entries])
        self.store.write(self.collection_name, payload)
        self._entries = entries
        self._notify(event.model_copy(update={"total": len(entries)}))

    def _notify(self, event: CollectionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Collection listener %r failed on %s", listener, event.kind)
