"""Document-model mapping: relation declarations, proxies and the mapper."""

from docmapper.mapping.mapper import DocumentModelMapper
from docmapper.mapping.proxies import (
    AssociationProxy,
    LazyCollection,
    LazyReference,
    is_proxy,
    is_resolved,
)
from docmapper.mapping.relations import Relation, RelationKind, RelationSpec

__all__ = [
    "DocumentModelMapper",
    "AssociationProxy",
    "LazyCollection",
    "LazyReference",
    "is_proxy",
    "is_resolved",
    "Relation",
    "RelationKind",
    "RelationSpec",
]
