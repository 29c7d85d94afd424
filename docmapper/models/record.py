"""Document record model for the SQL-backed document store."""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from docmapper.models.base import Base, TimestampMixin


class DocumentRecord(Base, TimestampMixin):
    """A schemaless document stored as a JSON body under (collection, key)."""

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(255), primary_key=True)
    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    rev: Mapped[str] = mapped_column(String(64), nullable=False)
    body: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<DocumentRecord(collection={self.collection!r}, key={self.key!r}, rev={self.rev!r})>"
