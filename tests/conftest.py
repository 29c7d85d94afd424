"""Shared pytest fixtures, sample models and test utilities for docmapper tests."""

import os
import tempfile
from typing import Generator, Optional
from unittest.mock import MagicMock

import pytest
from pydantic import Field

from docmapper.collection import DocumentCollection
from docmapper.identity_map import IdentityMap, reset_identity_map
from docmapper.mapping.relations import RelationSpec
from docmapper.models.model import Model
from docmapper.registry import CollectionRegistry, reset_registry
from docmapper.storage.database import Database, reset_db
from docmapper.storage.stores import MemoryDocumentStore, SqlDocumentStore


class Comment(Model):
    """Embedded in blogposts."""

    author_name: str
    text: str


class Blogpost(Model):
    title: str
    comments: list[Comment] = Field(default_factory=list)


class Publisher(Model):
    """Model without relations."""

    name: str
    city: str


class Author(Model):
    name: str
    books: list["Book"] = Field(default_factory=list)


class Book(Model):
    title: str
    author: Optional[Author] = None


Author.model_rebuild()


@pytest.fixture(autouse=True)
def clean_process_state():
    """Keep the process-wide identity map and registry empty between tests."""
    reset_identity_map()
    reset_registry()
    yield
    reset_identity_map()
    reset_registry()


@pytest.fixture
def identity_map() -> IdentityMap:
    """Provide a fresh, test-scoped identity map."""
    return IdentityMap()


@pytest.fixture
def registry() -> CollectionRegistry:
    """Provide a fresh, test-scoped collection registry."""
    return CollectionRegistry()


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture(scope="function")
def temp_db() -> Generator[Database, None, None]:
    """
    Create a temporary SQLite database for testing.

    Yields:
        Database instance with tables created
    """
    # Create temporary database file
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Reset global database instance
    reset_db()

    # Create database
    database = Database(f"sqlite:///{db_path}")
    database.create_tables()

    yield database

    # Cleanup
    database.drop_tables()
    database.dispose()
    reset_db()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def sql_store(temp_db) -> SqlDocumentStore:
    return SqlDocumentStore(temp_db)


def build_collections(store, identity_map: IdentityMap, registry: CollectionRegistry) -> dict:
    """Create and register the authors, books and blogposts collections."""
    authors = DocumentCollection(
        "authors",
        Author,
        store,
        relations=RelationSpec().referenced_by("books"),
        identity_map=identity_map,
        registry=registry,
    )
    books = DocumentCollection(
        "books",
        Book,
        store,
        relations=RelationSpec().references("author"),
        identity_map=identity_map,
        registry=registry,
    )
    blogposts = DocumentCollection(
        "blogposts",
        Blogpost,
        store,
        relations=RelationSpec().embeds("comments"),
        identity_map=identity_map,
        registry=registry,
    )
    registry.register(authors, "authors", "author")
    registry.register(books, "books")
    registry.register(blogposts, "blogposts")
    return {"authors": authors, "books": books, "blogposts": blogposts}


@pytest.fixture
def collections(memory_store, identity_map, registry) -> dict:
    """Collections over the in-memory store."""
    return build_collections(memory_store, identity_map, registry)


@pytest.fixture
def sql_collections(sql_store, identity_map, registry) -> dict:
    """Collections over the SQLite-backed store."""
    return build_collections(sql_store, identity_map, registry)


@pytest.fixture
def fake_authors(registry) -> MagicMock:
    """
    A counting stand-in for the authors collection.

    `by_key` returns one author per key; `by_example` returns no books.
    """
    known = {"a1": Author(key="a1", rev="r1", name="Ursula K. Le Guin")}
    collection = MagicMock(name="authors")
    collection.by_key.side_effect = lambda key: known.get(key)
    collection.by_example.return_value = []
    registry.register(collection, "author", "authors")
    return collection


@pytest.fixture
def fake_books(registry) -> MagicMock:
    """A counting stand-in for the books collection."""
    collection = MagicMock(name="books")
    collection.by_example.side_effect = lambda example: [
        Book(key="b1", rev="r1", title="A Wizard of Earthsea"),
        Book(key="b2", rev="r1", title="The Tombs of Atuan"),
    ]
    registry.register(collection, "books")
    return collection
