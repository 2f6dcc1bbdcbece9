"""Database models for ZIP Tagger."""
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from ziptag.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredCollection(Base):
    """Key-value table holding one serialized collection per name."""
    __tablename__ = "stored_collections"

    name: Mapped[str] = mapped_column(String(100), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self):
        return f"<StoredCollection(name='{self.name}', bytes={len(self.payload or '')})>"
