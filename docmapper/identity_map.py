"""Identity map keeping a single in-memory model per stored document.

This implements the Identity Map pattern (Fowler, PoEAA 195): within one unit
of work the same stored document is always represented by the same model
instance, so a mutation made through one reference is visible through every
other reference to it.

The map should be reset at the start of every unit of work (for example every
inbound request). Nothing in this package resets it implicitly; use
`unit_of_work()` or `docmapper.middleware.IdentityMapSessionMiddleware`.

Concurrency:
    The entries live in an immutable snapshot. Every mutation copies the
    current snapshot, adds the entry and swaps the new snapshot in with a
    compare-and-swap, retrying if another writer got there first. Readers
    never lock and never observe a partially updated map.

    `retrieve_or_store` does not serialize factories. Two threads racing on
    the same key may both build a model; the last successful swap wins and
    becomes the canonical entry. A caller that received the losing instance
    holds a stale, non-canonical object.
"""

import logging
import threading
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Callable, Generator, Hashable, Mapping, Optional, TypeVar

from docmapper.exceptions import IdentityMapError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MapKey = tuple[type, Hashable]

_EMPTY: Mapping[MapKey, Any] = MappingProxyType({})


class IdentityMap:
    """Cache from (model type, key) to the one live model instance."""

    def __init__(self) -> None:
        self._snapshot: Mapping[MapKey, Any] = _EMPTY
        self._swap_lock = threading.Lock()

    @property
    def snapshot(self) -> Mapping[MapKey, Any]:
        """The current immutable view of all entries."""
        return self._snapshot

    def reset(self) -> None:
        """Purge all stored models."""
        logger.debug("Resetting the identity map (%d entries)", len(self._snapshot))
        with self._swap_lock:
            self._snapshot = _EMPTY

    def store(self, model: T) -> T:
        """
        Add a model to the map, replacing any entry with the same type and key.

        Args:
            model: Model instance with a non-empty `key`

        Returns:
            The stored model

        Raises:
            IdentityMapError: If the model has no key
        """
        map_key = self.key_for(model)
        if not map_key[1]:
            raise IdentityMapError(
                f"Cannot store {type(model).__name__} without a key in the identity map"
            )

        while True:
            current = self._snapshot
            updated = dict(current)
            updated[map_key] = model
            if self._compare_and_swap(current, MappingProxyType(updated)):
                return model

    def retrieve(self, model_or_type: Any, key: Optional[Hashable] = None) -> Any:
        """
        Get a stored model.

        Accepts either a model type and a key, or a model instance whose type
        and key are used.

        Returns:
            The stored model, or None if there is no entry
        """
        return self._snapshot.get(self.key_for(model_or_type, key))

    def includes(self, model_or_type: Any, key: Optional[Hashable] = None) -> bool:
        """Check whether the map holds an entry for the given type and key."""
        return self.key_for(model_or_type, key) in self._snapshot

    def retrieve_or_store(
        self, model_type: type, key: Hashable, factory: Callable[[], T]
    ) -> T:
        """
        Return the stored model, building and storing it if absent.

        Args:
            model_type: Type of the model
            key: Key of the model
            factory: Zero-argument callable building the model on a miss

        Returns:
            The canonical model for (model_type, key)
        """
        existing = self._snapshot.get((model_type, key))
        if existing is not None:
            logger.debug("Identity map hit for %s[%s]", model_type.__name__, key)
            return existing

        logger.debug("Identity map miss for %s[%s]", model_type.__name__, key)
        return self.store(factory())

    @staticmethod
    def key_for(model_or_type: Any, key: Optional[Hashable] = None) -> MapKey:
        """Build the map key from a type and key, or from a model instance."""
        if isinstance(model_or_type, type):
            return (model_or_type, key)
        return (type(model_or_type), model_or_type.key)

    def _compare_and_swap(
        self, expected: Mapping[MapKey, Any], new: Mapping[MapKey, Any]
    ) -> bool:
        with self._swap_lock:
            if self._snapshot is not expected:
                return False
            self._snapshot = new
            return True

    def __len__(self) -> int:
        return len(self._snapshot)


# Process-wide identity map
_identity_map = IdentityMap()


def get_identity_map() -> IdentityMap:
    """Get the process-wide identity map."""
    return _identity_map


def reset_identity_map() -> None:
    """Reset the process-wide identity map."""
    _identity_map.reset()


@contextmanager
def unit_of_work(identity_map: IdentityMap | None = None) -> Generator[IdentityMap, None, None]:
    """
    Context manager marking the start of a unit of work.

    Resets the identity map on entry so models loaded inside the block never
    leak from an earlier unit of work.

    Usage:
        with unit_of_work():
            book = books.by_key("b1")
    """
    if identity_map is None:
        identity_map = _identity_map
    identity_map.reset()
    yield identity_map
