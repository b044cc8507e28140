from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from .base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StorageEntry(Base):
    """One key of a client's durable local storage (saved searches, recents, preferences)."""

    __tablename__ = "client_storage"
    __table_args__ = (UniqueConstraint("client_id", "key", name="uq_client_storage_client_key"),)

    id = Column(Integer, primary_key=True)
    client_id = Column(String(128), nullable=False, index=True)
    key = Column(String(64), nullable=False)
    value = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
