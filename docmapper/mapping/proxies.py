"""Association proxies for lazily resolved relations.

Proxies are only needed for non-embedded relations; embedded models are built
eagerly by the model type itself.

* `LazyReference` stands in for the "many" side of a one-to-many relation
  (`references`) and resolves to a single model or None.
* `LazyCollection` stands in for the "one" side (`referenced_by`) and resolves
  to the sequence of related models.

Both hold a zero-argument resolution callable and resolve on first use.
Reading, writing, comparing or iterating a proxy behaves like doing so on the
resolved value. `isinstance` reports the resolved value's class; only
`is_proxy()` and `is_resolved()` see the proxy itself.
"""

import logging
import threading
from collections.abc import Sequence
from typing import Any, Callable, Iterator, Optional

from docmapper.exceptions import ResolutionError

logger = logging.getLogger(__name__)

_PROXY_SLOTS = frozenset({"_relation", "_thunk", "_lock", "_value", "_resolved", "_key", "_cache"})


class AssociationProxy:
    """Base class holding the resolution callable and the resolved value."""

    __slots__ = ("_relation", "_thunk", "_lock", "_value", "_resolved")

    def __init__(self, relation: str, thunk: Callable[[], Any]):
        object.__setattr__(self, "_relation", relation)
        object.__setattr__(self, "_thunk", thunk)
        object.__setattr__(self, "_lock", threading.RLock())
        object.__setattr__(self, "_value", None)
        object.__setattr__(self, "_resolved", False)

    def _load(self) -> Any:
        logger.debug("Resolving relation '%s'", self._relation)
        try:
            return self._thunk()
        except ResolutionError:
            raise
        except Exception as e:
            raise ResolutionError(self._relation, e) from e

    def _resolve_target(self) -> Any:
        if self._resolved:
            return self._value
        with self._lock:
            if not self._resolved:
                object.__setattr__(self, "_value", self._load())
                object.__setattr__(self, "_resolved", True)
        return self._value

    @property
    def __wrapped__(self) -> Any:
        """The resolved value; resolves the proxy if needed."""
        return self._resolve_target()

    @property
    def __resolved__(self) -> bool:
        return self._resolved

    @property
    def __class__(self):
        return type(self._resolve_target())

    def __getattr__(self, name: str) -> Any:
        if name in _PROXY_SLOTS:
            raise AttributeError(name)
        return getattr(self._resolve_target(), name)

    def __eq__(self, other: object) -> bool:
        if is_proxy(other):
            other = other.__wrapped__
        return self._resolve_target() == other

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __bool__(self) -> bool:
        return bool(self._resolve_target())

    def __repr__(self) -> str:
        return repr(self._resolve_target())

    def __str__(self) -> str:
        return str(self._resolve_target())

    def __dir__(self) -> list[str]:
        return dir(self._resolve_target())


class LazyReference(AssociationProxy):
    """Proxy for a single referenced model, looked up by its key."""

    __slots__ = ("_key",)

    def __init__(self, relation: str, key: Any, thunk: Callable[[], Any]):
        AssociationProxy.__init__(self, relation, thunk)
        object.__setattr__(self, "_key", key)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _PROXY_SLOTS:
            object.__setattr__(self, name, value)
        else:
            setattr(self._resolve_target(), name, value)

    def __delattr__(self, name: str) -> None:
        if name in _PROXY_SLOTS:
            object.__delattr__(self, name)
        else:
            delattr(self._resolve_target(), name)

    def __hash__(self) -> int:
        return hash(self._resolve_target())


class LazyCollection(AssociationProxy, Sequence):
    """
    Proxy for the models referencing an owner through a foreign key.

    With `cache=True` the query runs once and its result is reused. With
    `cache=False` every access re-issues the query, so the collection always
    reflects the store at the time of access.
    """

    __slots__ = ("_cache",)

    def __init__(self, relation: str, thunk: Callable[[], Any], cache: bool = True):
        AssociationProxy.__init__(self, relation, thunk)
        object.__setattr__(self, "_cache", cache)

    def _load(self) -> list[Any]:
        return list(AssociationProxy._load(self))

    def _resolve_target(self) -> list[Any]:
        if self._cache:
            return AssociationProxy._resolve_target(self)
        return self._load()

    def __getitem__(self, index):
        return self._resolve_target()[index]

    def __len__(self) -> int:
        return len(self._resolve_target())

    def __iter__(self) -> Iterator[Any]:
        return iter(self._resolve_target())

    def __reversed__(self) -> Iterator[Any]:
        return reversed(self._resolve_target())

    def __contains__(self, item: object) -> bool:
        return item in self._resolve_target()

    def index(self, value: Any, *args: Any) -> int:
        return self._resolve_target().index(value, *args)

    def count(self, value: Any) -> int:
        return self._resolve_target().count(value)

    __hash__ = None


def is_proxy(obj: Any) -> bool:
    """Check whether an object is an association proxy, without resolving it."""
    return issubclass(type(obj), AssociationProxy)


def is_resolved(obj: Any) -> bool:
    """Check whether a proxy has already been resolved. Non-proxies count as resolved."""
    if not is_proxy(obj):
        return True
    return obj.__resolved__


def reference_key(obj: Any) -> Optional[Any]:
    """Get the foreign key a LazyReference was created with, without resolving it."""
    if issubclass(type(obj), LazyReference):
        return obj._key
    return None
