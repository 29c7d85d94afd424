"""Basic usage example: authors and books stored as documents."""

from typing import Optional

from pydantic import Field

from docmapper import (
    CollectionRegistry,
    DocumentCollection,
    IdentityMap,
    Model,
    RelationSpec,
    is_resolved,
    unit_of_work,
)
from docmapper.config import configure_logging
from docmapper.storage import Database, SqlDocumentStore


class Author(Model):
    name: str
    books: list["Book"] = Field(default_factory=list)


class Book(Model):
    title: str
    author: Optional[Author] = None


Author.model_rebuild()


def main():
    """Demonstrate saving, loading and navigating related models."""
    configure_logging()

    # Initialize database (uses SQLite by default)
    db = Database()
    db.create_tables()
    store = SqlDocumentStore(db)

    # Wire collections and register them under their relation names
    identity_map = IdentityMap()
    registry = CollectionRegistry()
    authors = DocumentCollection(
        "authors", Author, store,
        relations=RelationSpec().referenced_by("books"),
        identity_map=identity_map, registry=registry,
    )
    books = DocumentCollection(
        "books", Book, store,
        relations=RelationSpec().references("author"),
        identity_map=identity_map, registry=registry,
    )
    registry.register(authors, "authors", "author")
    registry.register(books, "books")

    with unit_of_work(identity_map):
        author = authors.save(Author(name="Ursula K. Le Guin"))
        for title in ("A Wizard of Earthsea", "The Tombs of Atuan"):
            book = books.save(Book(title=title, author=author))
            print(f"Created book: {book.title} (key: {book.key})")

    print("\n--- Query Examples ---")

    with unit_of_work(identity_map):
        book = books.by_example(title="A Wizard of Earthsea")[0]
        print(f"Author loaded yet? {is_resolved(book.author)}")
        print(f"'{book.title}' was written by {book.author.name}")

        same_author = authors.by_key(author.key)
        print(f"Same instance through both paths: {book.author.__wrapped__ is same_author}")
        print(f"{same_author.name} wrote {len(same_author.books)} books")

    print("\nAll operations completed successfully!")


if __name__ == "__main__":
    main()
