"""Flat document records as handed out by a document store."""

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional


@dataclass
class Document:
    """
    A stored document: a flat field map plus key and revision metadata.

    `key` is only present once the document has been persisted and `revision`
    changes on every write. Both are assigned by the store.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    key: Optional[str] = None
    revision: Optional[str] = None

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value of a field, or `default` when it is missing."""
        return self.fields.get(name, default)
