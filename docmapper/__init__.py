"""docmapper: object-document mapping core with identity map and lazy associations."""

from docmapper.collection import DocumentCollection
from docmapper.identity_map import (
    IdentityMap,
    get_identity_map,
    reset_identity_map,
    unit_of_work,
)
from docmapper.mapping import (
    DocumentModelMapper,
    LazyCollection,
    LazyReference,
    RelationSpec,
    is_proxy,
    is_resolved,
)
from docmapper.models import Document, Model
from docmapper.registry import CollectionRegistry, get_registry, reset_registry

__version__ = "0.1.0"

__all__ = [
    "DocumentCollection",
    "IdentityMap",
    "get_identity_map",
    "reset_identity_map",
    "unit_of_work",
    "DocumentModelMapper",
    "LazyCollection",
    "LazyReference",
    "RelationSpec",
    "is_proxy",
    "is_resolved",
    "Document",
    "Model",
    "CollectionRegistry",
    "get_registry",
    "reset_registry",
]
