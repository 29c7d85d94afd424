"""Mapping between stored documents and domain models."""

from typing import Any, Optional

from docmapper.exceptions import ConstructionError, NotFoundError
from docmapper.identity_map import IdentityMap, get_identity_map
from docmapper.mapping.proxies import (
    LazyCollection,
    LazyReference,
    is_proxy,
    is_resolved,
    reference_key,
)
from docmapper.mapping.relations import Relation, RelationKind, RelationSpec
from docmapper.models.document import Document
from docmapper.models.model import IDENTITY_FIELDS, Model
from docmapper.registry import CollectionRegistry, get_registry


class DocumentModelMapper:
    """
    Default mapper between `Document` and `Model` instances.

    Documents with a key are resolved through the identity map, so loading
    the same document twice within a unit of work yields the same model.
    Embedded relations are built eagerly; referenced relations become
    association proxies that only query their collection when read.

    A custom mapper has to provide at least `document_to_model` and
    `model_to_document`.
    """

    def __init__(
        self,
        model_type: type[Model],
        relations: Optional[RelationSpec] = None,
        identity_map: Optional[IdentityMap] = None,
        registry: Optional[CollectionRegistry] = None,
    ):
        """
        Initialize the mapper.

        Args:
            model_type: The model class documents are mapped to
            relations: Relation declarations for the model. Defaults to none.
                       The mapper keeps its own copy, so declarations added
                       later through the mapper do not leak into the given spec.
            identity_map: Identity map to use. Defaults to the process-wide map.
            registry: Collection registry used by proxies. Defaults to the
                      process-wide registry.

        Raises:
            ConfigurationError: If a relation names an attribute the model
                                does not declare
        """
        self.model_type = model_type
        self.relations = relations.copy() if relations is not None else RelationSpec()
        self.identity_map = identity_map if identity_map is not None else get_identity_map()
        self.registry = registry if registry is not None else get_registry()
        self.relations.validate(model_type)

    def embeds(self, name: str) -> "DocumentModelMapper":
        """Declare an embedded relation on this mapper."""
        self.relations.embeds(name)
        self.relations.validate(self.model_type)
        return self

    def referenced_by(
        self, name: str, foreign_key: Optional[str] = None, cache: bool = True
    ) -> "DocumentModelMapper":
        """Declare a referenced-by relation on this mapper."""
        self.relations.referenced_by(name, foreign_key=foreign_key, cache=cache)
        self.relations.validate(self.model_type)
        return self

    def references(self, name: str, foreign_key: Optional[str] = None) -> "DocumentModelMapper":
        """Declare a references relation on this mapper."""
        self.relations.references(name, foreign_key=foreign_key)
        self.relations.validate(self.model_type)
        return self

    def document_to_model(self, document: Document) -> Model:
        """
        Map a document to a model.

        Keyed documents go through the identity map: if a model for the same
        type and key is already present it is returned unchanged and the
        document is not parsed again.

        Args:
            document: Stored document

        Returns:
            Model instance of `model_type`

        Raises:
            ConstructionError: If the document fields cannot build the model
        """
        if not document.key:
            return self._build_model(document)
        return self.identity_map.retrieve_or_store(
            self.model_type, document.key, lambda: self._build_model(document)
        )

    def model_to_document(self, model: Model) -> dict[str, Any]:
        """
        Map a model to a flat document field map.

        Key and revision are left out, embedded models are inlined, references
        are stored as their target's key under the foreign key field and
        referenced-by relations are dropped.

        Args:
            model: Model instance

        Returns:
            Dictionary of document fields
        """
        document = model.attributes(exclude=self.relations.names)

        for relation in self.relations.relations(RelationKind.EMBEDS):
            embedded = getattr(model, relation.name, None) or []
            document[relation.name] = [self._embedded_attributes(item) for item in embedded]

        for relation in self.relations.relations(RelationKind.REFERENCES):
            key = self._referenced_key(getattr(model, relation.name, None))
            if key:
                document[self.relations.foreign_key_for(relation, self.model_type)] = key

        return document

    def _build_model(self, document: Document) -> Model:
        skipped = IDENTITY_FIELDS | set(self.relations.referenced_by_names) | set(
            self.relations.reference_names
        )
        fields = {name: value for name, value in document.fields.items() if name not in skipped}

        try:
            model = self.model_type.model_validate(fields)
        except (ValueError, TypeError) as e:
            raise ConstructionError(self.model_type, e) from e

        for relation in self.relations.relations(RelationKind.REFERENCED_BY):
            setattr(model, relation.name, self._referenced_by_proxy(relation, model))

        for relation in self.relations.relations(RelationKind.REFERENCES):
            foreign_key = document.get(self.relations.foreign_key_for(relation, self.model_type))
            if foreign_key:
                setattr(model, relation.name, self._references_proxy(relation, foreign_key))

        # Set last; referenced-by proxies read model.key when they resolve
        model.key = document.key
        model.rev = document.revision
        return model

    def _referenced_by_proxy(self, relation: Relation, model: Model) -> LazyCollection:
        foreign_key = self.relations.foreign_key_for(relation, self.model_type)
        registry = self.registry

        def query() -> Any:
            return registry.collection_for(relation.name).by_example({foreign_key: model.key})

        return LazyCollection(relation.name, query, cache=relation.cache)

    def _references_proxy(self, relation: Relation, key: Any) -> LazyReference:
        registry = self.registry

        def lookup() -> Any:
            try:
                return registry.collection_for(relation.name).by_key(key)
            except NotFoundError:
                return None

        return LazyReference(relation.name, key, lookup)

    @staticmethod
    def _referenced_key(value: Any) -> Optional[Any]:
        if value is None:
            return None
        if is_proxy(value):
            if not is_resolved(value):
                return reference_key(value)
            value = value.__wrapped__
            if value is None:
                return None
        return getattr(value, "key", None)

    @staticmethod
    def _embedded_attributes(item: Any) -> dict[str, Any]:
        if isinstance(item, Model):
            return item.attributes()
        return {name: value for name, value in dict(item).items() if name not in IDENTITY_FIELDS}
