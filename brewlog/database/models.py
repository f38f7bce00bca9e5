"""SQLAlchemy ORM models for BrewLog."""

from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class StorageBlob(Base):
    """One opaque value per key, like browser local storage."""

    __tablename__ = "storage_blobs"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<StorageBlob key={self.key} size={len(self.value or '')}>"
