"""Registry mapping relation names to the collections serving them."""

import logging
from typing import Any

from docmapper.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CollectionRegistry:
    """
    Explicit relation name -> collection mapping, populated at startup.

    Relation proxies look up the collection responsible for a related model by
    the relation's attribute name, so a collection is usually registered under
    both its singular and plural relation names:

        registry.register(authors, "author", "authors")
        registry.register(books, "books", "book")
    """

    def __init__(self) -> None:
        self._collections: dict[str, Any] = {}

    def register(self, collection: Any, *names: str) -> Any:
        """
        Register a collection under one or more relation names.

        Args:
            collection: Collection handle providing `by_key` and `by_example`
            *names: Relation names resolved to this collection. Defaults to the
                    collection's own `name` attribute.

        Returns:
            The registered collection
        """
        names = names or (collection.name,)
        for name in names:
            current = self._collections.get(name)
            if current is not None and current is not collection:
                raise ConfigurationError(
                    f"Relation name '{name}' is already registered to another collection",
                    name,
                )
            self._collections[name] = collection
            logger.debug("Registered collection for relation '%s'", name)
        return collection

    def collection_for(self, name: str) -> Any:
        """
        Get the collection registered for a relation name.

        Raises:
            ConfigurationError: If no collection is registered under that name
        """
        try:
            return self._collections[name]
        except KeyError:
            raise ConfigurationError(
                f"No collection registered for relation '{name}'", name
            ) from None

    def clear(self) -> None:
        """Remove all registrations."""
        self._collections.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._collections

    def __len__(self) -> int:
        return len(self._collections)


# Process-wide registry
_registry = CollectionRegistry()


def get_registry() -> CollectionRegistry:
    """Get the process-wide collection registry."""
    return _registry


def reset_registry() -> None:
    """Clear the process-wide collection registry (useful for testing)."""
    _registry.clear()
