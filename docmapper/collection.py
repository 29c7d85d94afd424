"""Collections: model-level access to one named set of stored documents."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from docmapper.identity_map import IdentityMap
from docmapper.mapping.mapper import DocumentModelMapper
from docmapper.mapping.relations import RelationSpec
from docmapper.models.model import Model
from docmapper.registry import CollectionRegistry
from docmapper.storage.stores import DocumentStore

logger = logging.getLogger(__name__)


class DocumentCollection:
    """
    Loads and saves models of one type through a document store.

    Collections are the handles association proxies query: register them in a
    `CollectionRegistry` under the relation names that point at them.

    Example:
        authors = DocumentCollection("authors", Author, store,
                                     relations=RelationSpec().referenced_by("books"))
        books = DocumentCollection("books", Book, store,
                                   relations=RelationSpec().references("author"))
        registry.register(authors, "authors", "author")
        registry.register(books, "books")
    """

    def __init__(
        self,
        name: str,
        model_type: type[Model],
        store: DocumentStore,
        relations: Optional[RelationSpec] = None,
        identity_map: Optional[IdentityMap] = None,
        registry: Optional[CollectionRegistry] = None,
        mapper: Optional[DocumentModelMapper] = None,
    ):
        """
        Initialize the collection.

        Args:
            name: Collection name in the store
            model_type: Model class of the documents
            store: Document store holding the collection
            relations: Relation declarations, used when no mapper is given
            identity_map: Identity map, used when no mapper is given
            registry: Collection registry, used when no mapper is given
            mapper: Fully configured mapper to use instead of building one
        """
        self.name = name
        self.model_type = model_type
        self.store = store
        self.mapper = mapper or DocumentModelMapper(
            model_type, relations=relations, identity_map=identity_map, registry=registry
        )

    @property
    def identity_map(self) -> IdentityMap:
        return self.mapper.identity_map

    def by_key(self, key: str) -> Optional[Model]:
        """
        Get a model by its key.

        Models already loaded in the current unit of work are returned from the
        identity map without querying the store.

        Returns:
            The model, or None if no document has that key
        """
        if not key:
            return None

        cached = self.identity_map.retrieve(self.model_type, key)
        if cached is not None:
            return cached

        document = self.store.get(self.name, key)
        if document is None:
            return None
        return self.mapper.document_to_model(document)

    def by_example(self, example: Optional[dict[str, Any]] = None, **fields: Any) -> list[Model]:
        """
        Get all models whose documents match every given field value.

        Args:
            example: Mapping of field name to value
            **fields: Additional field values

        Returns:
            List of matching models
        """
        query = {**(example or {}), **fields}
        return [self.mapper.document_to_model(d) for d in self.store.find(self.name, query)]

    def all(self) -> list[Model]:
        """Get all models of the collection."""
        return [self.mapper.document_to_model(d) for d in self.store.all(self.name)]

    def save(self, model: Model) -> Model:
        """
        Insert or replace the document of a model.

        Models carrying a revision are replaced, all others are inserted under
        their key (or a generated one). Afterwards the model carries the stored
        key and revision and is registered in the identity map.

        Returns:
            The saved model
        """
        now = datetime.now(timezone.utc)
        if model.created_at is None:
            model.created_at = now
        model.updated_at = now

        fields = self.mapper.model_to_document(model)
        if model.rev:
            document = self.store.replace(self.name, model.key, fields)
        else:
            document = self.store.insert(self.name, fields, key=model.key)

        model.key = document.key
        model.rev = document.revision
        logger.debug("Saved %s/%s at revision %s", self.name, model.key, model.rev)
        return self.identity_map.store(model)

    def delete(self, model_or_key: Model | str) -> bool:
        """
        Delete a document by model or key.

        Returns:
            True if a document was deleted
        """
        key = model_or_key if isinstance(model_or_key, str) else model_or_key.key
        return self.store.delete(self.name, key)

    def count(self) -> int:
        """Count the documents of the collection."""
        return self.store.count(self.name)

    def __repr__(self) -> str:
        return f"<DocumentCollection(name={self.name!r}, model={self.model_type.__name__})>"
