"""Durable key-value storage for serialized collections."""
import logging
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from ziptag.errors import StorageError
from ziptag.models import StoredCollection

logger = logging.getLogger(__name__)


class CollectionStore(Protocol):
    def read(self, name: str) -> Optional[str]:
        ...

    def write(self, name: str, payload: str) -> None:
        ...


class SqlCollectionStore:
    """Stores each collection as a single text payload row."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def read(self, name: str) -> Optional[str]:
        try:
            with self.session_factory() as session:
                row = session.get(StoredCollection, name)
                return row.payload if row is not None else None
        except SQLAlchemyError as e:
            logger.warning("Reading collection %r failed: %s", name, e)
            raise StorageError("Failed to load saved data") from e

    def write(self, name: str, payload: str) -> None:
        """Replace the whole payload in one transaction."""
        try:
            with self.session_factory() as session, session.begin():
                row = session.get(StoredCollection, name)
                if row is None:
                    session.add(StoredCollection(name=name, payload=payload))
                else:
                    row.payload = payload
        except SQLAlchemyError as e:
            logger.warning("Writing collection %r failed: %s", name, e)
            raise StorageError("Failed to save data to storage") from e
