"""Declarative relation configuration for document-model mappers."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from docmapper.exceptions import ConfigurationError


class RelationKind(str, Enum):
    """Categories of relations between models."""

    EMBEDS = "embeds"  # sub-models travel inline in the document
    REFERENCED_BY = "referenced_by"  # the "one" side of a one-to-many
    REFERENCES = "references"  # the "many" side, stored as <name>_id


@dataclass(frozen=True)
class Relation:
    """A single declared relation on a model attribute."""

    name: str
    kind: RelationKind
    foreign_key: Optional[str] = None
    cache: bool = True


def underscore(name: str) -> str:
    """Convert a CamelCase class name to snake_case (BlogPost -> blog_post)."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name).lower()


class RelationSpec:
    """
    Declares which model attributes are embedded, referenced-by or references.

    Declarations accumulate: repeating a declaration in the same category is
    harmless, while declaring one attribute in two categories raises a
    ConfigurationError straight away.

    Example:
        relations = (
            RelationSpec()
            .embeds("comments")
            .references("author")
        )
    """

    def __init__(self) -> None:
        self._relations: dict[str, Relation] = {}

    def embeds(self, name: str) -> "RelationSpec":
        """
        Declare an attribute holding a list of embedded models.

        The model has to declare the attribute as a list of the embedded model
        type, for example `comments: list[Comment] = []`.
        """
        self._declare(Relation(name, RelationKind.EMBEDS))
        return self

    def referenced_by(
        self, name: str, foreign_key: Optional[str] = None, cache: bool = True
    ) -> "RelationSpec":
        """
        Declare the "one" side of a one-to-many relation.

        Args:
            name: Attribute holding the related models; also the registry name
                  of the related collection
            foreign_key: Field on the related documents holding this model's
                         key (default: <this_model_name>_id)
            cache: If False, every access re-issues the query instead of
                   reusing the first result
        """
        self._declare(Relation(name, RelationKind.REFERENCED_BY, foreign_key, cache))
        return self

    def references(self, name: str, foreign_key: Optional[str] = None) -> "RelationSpec":
        """
        Declare the "many" side of a one-to-many relation.

        Args:
            name: Attribute holding the related model; also the registry name
                  of the related collection
            foreign_key: Document field holding the related key (default: <name>_id)
        """
        self._declare(Relation(name, RelationKind.REFERENCES, foreign_key))
        return self

    def _declare(self, relation: Relation) -> None:
        existing = self._relations.get(relation.name)
        if existing is not None and existing.kind != relation.kind:
            raise ConfigurationError(
                f"Attribute '{relation.name}' is already declared as "
                f"{existing.kind.value}, cannot also declare it as {relation.kind.value}",
                relation.name,
            )
        self._relations[relation.name] = relation

    def copy(self) -> "RelationSpec":
        """Return an independent spec with the same declarations."""
        duplicate = RelationSpec()
        duplicate._relations = dict(self._relations)
        return duplicate

    def relations(self, kind: Optional[RelationKind] = None) -> list[Relation]:
        """Get declared relations in declaration order, optionally of one kind."""
        return [r for r in self._relations.values() if kind is None or r.kind == kind]

    def get(self, name: str) -> Optional[Relation]:
        """Get the relation declared on an attribute, if any."""
        return self._relations.get(name)

    @property
    def embedded_names(self) -> list[str]:
        return [r.name for r in self.relations(RelationKind.EMBEDS)]

    @property
    def referenced_by_names(self) -> list[str]:
        return [r.name for r in self.relations(RelationKind.REFERENCED_BY)]

    @property
    def reference_names(self) -> list[str]:
        return [r.name for r in self.relations(RelationKind.REFERENCES)]

    @property
    def names(self) -> set[str]:
        """All attribute names that carry a relation."""
        return set(self._relations)

    @staticmethod
    def foreign_key_for(relation: Relation, model_type: type) -> str:
        """
        Get the foreign key field used by a relation.

        For `references` this is the field on the mapped document, for
        `referenced_by` the field on the related documents.
        """
        if relation.foreign_key:
            return relation.foreign_key
        if relation.kind == RelationKind.REFERENCES:
            return f"{relation.name}_id"
        if relation.kind == RelationKind.REFERENCED_BY:
            return f"{underscore(model_type.__name__)}_id"
        raise ConfigurationError(
            f"Embedded attribute '{relation.name}' has no foreign key", relation.name
        )

    def validate(self, model_type: type) -> None:
        """
        Check that every relation names an attribute declared by the model.

        Raises:
            ConfigurationError: If a relation attribute is not declared
        """
        declared = getattr(model_type, "model_fields", {})
        for name in self._relations:
            if name not in declared:
                raise ConfigurationError(
                    f"{model_type.__name__} declares no attribute '{name}'", name
                )

    def __contains__(self, name: object) -> bool:
        return name in self._relations

    def __iter__(self) -> Iterator[Relation]:
        return iter(self._relations.values())

    def __len__(self) -> int:
        return len(self._relations)
