"""
Storage Models

SQLAlchemy ORM model for imported compendium entries.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredEntry(Base):
    """
    One compendium JSON file as last imported from the remote repository.

    `content_hash` is the remote blob sha at the last successful import.
    `indexed_hash` is the content_hash value as of the last successful
    indexing; an entry is pending indexing while the two differ.
    """

    __tablename__ = "foundry_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    source_id = Column(String(64), nullable=False, default="")
    category = Column(String(64), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    raw_content = Column(Text, nullable=False)
    content_hash = Column(String(64), nullable=False)
    source_path = Column(String(1000), nullable=False, unique=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    indexed_hash = Column(String(64), nullable=True)

    __table_args__ = (Index("idx_foundry_entries_name", "name"),)

    @property
    def is_pending_indexing(self) -> bool:
        return self.indexed_hash is None or self.indexed_hash != self.content_hash

    def to_dict(self, include_content: bool = False) -> dict:
        data = {
            "id": self.id,
            "source_id": self.source_id,
            "category": self.category,
            "name": self.name,
            "content_hash": self.content_hash,
            "source_path": self.source_path,
            "last_synced_at": self.last_synced_at.isoformat() if self.last_synced_at else None,
            "indexed_hash": self.indexed_hash,
        }
        if include_content:
            data["raw_content"] = self.raw_content
        return data

    def __repr__(self) -> str:
        return f"<StoredEntry {self.category}:{self.name} ({self.source_path})>"
