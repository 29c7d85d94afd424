"""Tests for the document stores and the SQL schema behind them."""

import pytest

pytestmark = pytest.mark.unit

from docmapper.exceptions import DuplicateError, NotFoundError
from docmapper.models.document import Document
from docmapper.models.record import DocumentRecord
from docmapper.storage.repositories import DocumentRecordRepository
from docmapper.storage.stores import DocumentStore, MemoryDocumentStore, SqlDocumentStore


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Run each store test against both store implementations."""
    if request.param == "memory":
        return MemoryDocumentStore()
    return request.getfixturevalue("sql_store")


class TestDocumentStores:
    """Behaviour shared by all document stores."""

    def test_implements_protocol(self, store):
        assert isinstance(store, DocumentStore)

    def test_insert_and_get(self, store):
        inserted = store.insert("books", {"title": "Go", "author_id": "a1"}, key="b1")

        assert isinstance(inserted, Document)
        assert inserted.key == "b1"
        assert inserted.revision

        loaded = store.get("books", "b1")
        assert loaded.fields == {"title": "Go", "author_id": "a1"}
        assert loaded.revision == inserted.revision

    def test_insert_generates_key(self, store):
        inserted = store.insert("books", {"title": "Go"})
        assert inserted.key
        assert store.get("books", inserted.key) is not None

    def test_insert_duplicate(self, store):
        store.insert("books", {"title": "Go"}, key="b1")
        with pytest.raises(DuplicateError):
            store.insert("books", {"title": "Other"}, key="b1")

    def test_same_key_in_other_collection(self, store):
        store.insert("books", {"title": "Go"}, key="x1")
        store.insert("authors", {"name": "Ursula"}, key="x1")

        assert store.get("books", "x1").fields == {"title": "Go"}
        assert store.get("authors", "x1").fields == {"name": "Ursula"}

    def test_get_missing(self, store):
        assert store.get("books", "nope") is None

    def test_nested_fields(self, store):
        fields = {"title": "Hello", "comments": [{"author_name": "ann", "text": "hi"}]}
        store.insert("blogposts", fields, key="p1")
        assert store.get("blogposts", "p1").fields == fields

    def test_returned_fields_are_copies(self, store):
        """Test that mutating a loaded document does not touch the store."""
        store.insert("books", {"title": "Go", "tags": ["a"]}, key="b1")

        loaded = store.get("books", "b1")
        loaded.fields["title"] = "changed"

        assert store.get("books", "b1").fields["title"] == "Go"

    def test_find(self, store):
        store.insert("books", {"title": "A", "author_id": "a1"}, key="b1")
        store.insert("books", {"title": "B", "author_id": "a1"}, key="b2")
        store.insert("books", {"title": "C", "author_id": "a2"}, key="b3")

        found = store.find("books", {"author_id": "a1"})

        assert sorted(d.key for d in found) == ["b1", "b2"]

    def test_find_several_fields(self, store):
        store.insert("books", {"title": "A", "author_id": "a1"}, key="b1")
        store.insert("books", {"title": "B", "author_id": "a1"}, key="b2")

        found = store.find("books", {"author_id": "a1", "title": "B"})

        assert [d.key for d in found] == ["b2"]

    def test_find_missing_field(self, store):
        store.insert("books", {"title": "A"}, key="b1")
        assert store.find("books", {"author_id": "a1"}) == []

    def test_all(self, store):
        store.insert("books", {"title": "A"}, key="b1")
        store.insert("books", {"title": "B"}, key="b2")
        store.insert("authors", {"name": "Ursula"}, key="a1")

        assert sorted(d.key for d in store.all("books")) == ["b1", "b2"]

    def test_replace(self, store):
        inserted = store.insert("books", {"title": "Go", "author_id": "a1"}, key="b1")

        replaced = store.replace("books", "b1", {"title": "Go, revised"})

        assert replaced.revision != inserted.revision
        assert store.get("books", "b1").fields == {"title": "Go, revised"}

    def test_replace_missing(self, store):
        with pytest.raises(NotFoundError):
            store.replace("books", "nope", {"title": "Go"})

    def test_delete(self, store):
        store.insert("books", {"title": "Go"}, key="b1")

        assert store.delete("books", "b1") is True
        assert store.get("books", "b1") is None
        assert store.delete("books", "b1") is False

    def test_count(self, store):
        assert store.count("books") == 0
        store.insert("books", {"title": "A"}, key="b1")
        store.insert("books", {"title": "B"}, key="b2")
        assert store.count("books") == 2
        assert store.count("authors") == 0


class TestSchema:
    """Tests for the documents table."""

    def test_create_record(self, temp_db):
        """Test storing and loading a document record."""
        with temp_db.session() as session:
            session.add(
                DocumentRecord(collection="books", key="b1", rev="r1", body={"title": "Go"})
            )

        with temp_db.session() as session:
            record = session.get(DocumentRecord, ("books", "b1"))
            assert record is not None
            assert record.body == {"title": "Go"}
            assert record.created_at is not None
            assert record.updated_at is not None

    def test_repository_crud(self, temp_db):
        with temp_db.session() as session:
            repo = DocumentRecordRepository(session)
            repo.create(DocumentRecord(collection="books", key="b1", rev="r1", body={"title": "Go"}))
            repo.create(DocumentRecord(collection="books", key="b2", rev="r1", body={"title": "C"}))

            assert repo.count("books") == 2
            assert [r.key for r in repo.list("books", limit=1)] == ["b1"]
            assert [r.key for r in repo.find_by_example("books", {"title": "C"})] == ["b2"]

            record = repo.get_by_key("books", "b1")
            record.body = {"title": "Go, revised"}
            repo.update(record)

            assert repo.get_by_key("books", "b1").body == {"title": "Go, revised"}
            assert repo.delete("books", "b2") is True
            assert repo.delete("books", "b2") is False
            assert repo.count("books") == 1

    def test_store_uses_global_database(self, temp_db, monkeypatch):
        """Test that a store without a database falls back to the global one."""
        monkeypatch.setattr("docmapper.storage.stores.get_db", lambda: temp_db)
        assert SqlDocumentStore().database is temp_db
