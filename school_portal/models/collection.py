"""Stored collection model."""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_portal.core.database import Base
from school_portal.models.base import TimestampMixin


class StoredCollection(Base, TimestampMixin):
    """One named collection, persisted as a whole JSON document."""

    __tablename__ = "stored_collections"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    item_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<StoredCollection(name={self.name}, items={self.item_count})>"
