"""Document stores: the storage collaborators collections read from and write to."""

import copy
import logging
import uuid
from contextlib import contextmanager
from threading import RLock
from typing import Any, Generator, Optional, Protocol, runtime_checkable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from docmapper.exceptions import DatabaseError, DuplicateError, NotFoundError
from docmapper.models.document import Document
from docmapper.models.record import DocumentRecord
from docmapper.storage.database import Database, get_db
from docmapper.storage.repositories import DocumentRecordRepository

logger = logging.getLogger(__name__)


def new_revision() -> str:
    return uuid.uuid4().hex


@runtime_checkable
class DocumentStore(Protocol):
    """
    Storage engine interface.

    Every write assigns a fresh revision. Inserts without a key get a
    generated one.
    """

    def get(self, collection: str, key: str) -> Optional[Document]:
        ...

    def find(self, collection: str, example: dict[str, Any]) -> list[Document]:
        ...

    def all(self, collection: str) -> list[Document]:
        ...

    def insert(self, collection: str, fields: dict[str, Any], key: Optional[str] = None) -> Document:
        ...

    def replace(self, collection: str, key: str, fields: dict[str, Any]) -> Document:
        ...

    def delete(self, collection: str, key: str) -> bool:
        ...

    def count(self, collection: str) -> int:
        ...


class MemoryDocumentStore:
    """In-memory document store for tests and scripts."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._collections: dict[str, dict[str, tuple[str, dict[str, Any]]]] = {}

    def _documents(self, collection: str) -> dict[str, tuple[str, dict[str, Any]]]:
        return self._collections.setdefault(collection, {})

    @staticmethod
    def _to_document(key: str, entry: tuple[str, dict[str, Any]]) -> Document:
        revision, fields = entry
        return Document(copy.deepcopy(fields), key=key, revision=revision)

    def get(self, collection: str, key: str) -> Optional[Document]:
        with self._lock:
            entry = self._documents(collection).get(key)
            return self._to_document(key, entry) if entry is not None else None

    def find(self, collection: str, example: dict[str, Any]) -> list[Document]:
        with self._lock:
            return [
                self._to_document(key, entry)
                for key, entry in self._documents(collection).items()
                if all(entry[1].get(field) == value for field, value in example.items())
            ]

    def all(self, collection: str) -> list[Document]:
        return self.find(collection, {})

    def insert(self, collection: str, fields: dict[str, Any], key: Optional[str] = None) -> Document:
        key = key or str(uuid.uuid4())
        with self._lock:
            documents = self._documents(collection)
            if key in documents:
                raise DuplicateError(collection, "key", key)
            documents[key] = (new_revision(), copy.deepcopy(fields))
            logger.debug("Inserted %s/%s", collection, key)
            return self._to_document(key, documents[key])

    def replace(self, collection: str, key: str, fields: dict[str, Any]) -> Document:
        with self._lock:
            documents = self._documents(collection)
            if key not in documents:
                raise NotFoundError(collection, key)
            documents[key] = (new_revision(), copy.deepcopy(fields))
            logger.debug("Replaced %s/%s", collection, key)
            return self._to_document(key, documents[key])

    def delete(self, collection: str, key: str) -> bool:
        with self._lock:
            return self._documents(collection).pop(key, None) is not None

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._documents(collection))


class SqlDocumentStore:
    """Document store persisting JSON documents through SQLAlchemy."""

    def __init__(self, database: Database | None = None):
        """
        Initialize the store.

        Args:
            database: Database to use. If None, uses the global database.
        """
        self.database = database if database is not None else get_db()

    @contextmanager
    def _repository(self, action: str) -> Generator[DocumentRecordRepository, None, None]:
        try:
            with self.database.session() as session:
                yield DocumentRecordRepository(session)
        except SQLAlchemyError as e:
            logger.exception(f"Database error while trying to {action}")
            raise DatabaseError(f"Failed to {action}: {str(e)}", e) from e

    @staticmethod
    def _to_document(record: DocumentRecord) -> Document:
        return Document(dict(record.body), key=record.key, revision=record.rev)

    def get(self, collection: str, key: str) -> Optional[Document]:
        with self._repository(f"load {collection}/{key}") as repo:
            record = repo.get_by_key(collection, key)
            return self._to_document(record) if record is not None else None

    def find(self, collection: str, example: dict[str, Any]) -> list[Document]:
        with self._repository(f"query {collection}") as repo:
            return [self._to_document(r) for r in repo.find_by_example(collection, example)]

    def all(self, collection: str) -> list[Document]:
        with self._repository(f"list {collection}") as repo:
            return [self._to_document(r) for r in repo.list(collection)]

    def insert(self, collection: str, fields: dict[str, Any], key: Optional[str] = None) -> Document:
        key = key or str(uuid.uuid4())
        try:
            with self._repository(f"insert {collection}/{key}") as repo:
                if repo.get_by_key(collection, key) is not None:
                    raise DuplicateError(collection, "key", key)
                record = repo.create(
                    DocumentRecord(collection=collection, key=key, rev=new_revision(), body=dict(fields))
                )
                logger.debug("Inserted %s/%s", collection, key)
                return self._to_document(record)
        except DatabaseError as e:
            if isinstance(e.original_error, IntegrityError):
                raise DuplicateError(collection, "key", key) from e
            raise

    def replace(self, collection: str, key: str, fields: dict[str, Any]) -> Document:
        with self._repository(f"replace {collection}/{key}") as repo:
            record = repo.get_by_key(collection, key)
            if record is None:
                raise NotFoundError(collection, key)
            record.body = dict(fields)
            record.rev = new_revision()
            repo.update(record)
            logger.debug("Replaced %s/%s", collection, key)
            return self._to_document(record)

    def delete(self, collection: str, key: str) -> bool:
        with self._repository(f"delete {collection}/{key}") as repo:
            return repo.delete(collection, key)

    def count(self, collection: str) -> int:
        with self._repository(f"count {collection}") as repo:
            return repo.count(collection)
