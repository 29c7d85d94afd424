"""Repository pattern implementation for data access layer."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from docmapper.models.record import DocumentRecord


class DocumentRecordRepository:
    """Repository for stored document records, scoped per collection."""

    def __init__(self, session: Session):
        """Initialize repository with a database session."""
        self.session = session

    def create(self, record: DocumentRecord) -> DocumentRecord:
        """Create a new document record."""
        self.session.add(record)
        self.session.flush()
        return record

    def get_by_key(self, collection: str, key: str) -> Optional[DocumentRecord]:
        """Get a record by collection and key."""
        return self.session.get(DocumentRecord, (collection, key))

    def list(self, collection: str, limit: int | None = None, offset: int = 0) -> list[DocumentRecord]:
        """List records of a collection in insertion order."""
        stmt = (
            select(DocumentRecord)
            .where(DocumentRecord.collection == collection)
            .order_by(DocumentRecord.created_at, DocumentRecord.key)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.scalars(stmt))

    def find_by_example(self, collection: str, example: dict[str, Any]) -> list[DocumentRecord]:
        """
        Find records whose body fields equal every field of the example.

        The comparison runs over the decoded JSON body so that SQLite and
        PostgreSQL return the same matches for the same values.

        Args:
            collection: Collection name
            example: Mapping of field name to required value

        Returns:
            Matching records in insertion order
        """
        return [
            record
            for record in self.list(collection)
            if all(record.body.get(field) == value for field, value in example.items())
        ]

    def update(self, record: DocumentRecord) -> DocumentRecord:
        """Update an existing record."""
        self.session.flush()
        return record

    def count(self, collection: str) -> int:
        """Count records of a collection."""
        query = select(func.count()).select_from(DocumentRecord).where(
            DocumentRecord.collection == collection
        )
        return self.session.scalar(query) or 0

    def delete(self, collection: str, key: str) -> bool:
        """Delete a record by collection and key."""
        result = self.session.execute(
            delete(DocumentRecord).where(
                DocumentRecord.collection == collection, DocumentRecord.key == key
            )
        )
        return result.rowcount > 0
