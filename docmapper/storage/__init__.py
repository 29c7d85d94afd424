"""Storage layer for docmapper."""

from docmapper.storage.database import Database, get_db, reset_db
from docmapper.storage.repositories import DocumentRecordRepository
from docmapper.storage.stores import DocumentStore, MemoryDocumentStore, SqlDocumentStore

__all__ = [
    "Database",
    "get_db",
    "reset_db",
    "DocumentRecordRepository",
    "DocumentStore",
    "MemoryDocumentStore",
    "SqlDocumentStore",
]
