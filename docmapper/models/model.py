"""Base class for domain models mapped to documents."""

from datetime import datetime
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict

IDENTITY_FIELDS = frozenset({"key", "rev"})
TIMESTAMP_FIELDS = ("created_at", "updated_at")


class Model(BaseModel):
    """
    Domain model with key, revision and timestamp attributes.

    Declared attributes are coerced and validated by pydantic when a model is
    built from a document. Assignment is not re-validated so
    relation attributes can hold association proxies until they are read.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=False,
        extra="ignore",
    )

    key: Optional[str] = None
    rev: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def persisted(self) -> bool:
        """Check if the model has been stored (it carries a key)."""
        return bool(self.key)

    def attributes(self, exclude: Iterable[str] = ()) -> dict[str, Any]:
        """
        Return the JSON-compatible attribute map of this model.

        `key` and `rev` are never included and timestamps that were never
        assigned are left out.

        Args:
            exclude: Additional attribute names to leave out

        Returns:
            Dictionary of attribute name to value
        """
        data = self.model_dump(mode="json", exclude=set(exclude) | IDENTITY_FIELDS)
        for name in TIMESTAMP_FIELDS:
            if data.get(name) is None:
                data.pop(name, None)
        return data
