"""Custom exceptions for mapping and persistence operations."""


class DocMapperError(Exception):
    """Base exception for docmapper errors."""

    pass


class ConfigurationError(DocMapperError):
    """Raised when relations or collections are declared inconsistently."""

    def __init__(self, message: str, relation: str | None = None):
        super().__init__(message)
        self.relation = relation


class ConstructionError(DocMapperError):
    """Raised when a document cannot be turned into a model instance."""

    def __init__(self, model_type: type, original_error: Exception | None = None):
        message = f"Cannot build {model_type.__name__} from document"
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)
        self.model_type = model_type
        self.original_error = original_error


class ResolutionError(DocMapperError):
    """Raised on first access when an association proxy fails to resolve."""

    def __init__(self, relation: str, original_error: Exception | None = None):
        message = f"Failed to resolve relation '{relation}'"
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)
        self.relation = relation
        self.original_error = original_error


class IdentityMapError(DocMapperError):
    """Raised when a model without a key is handed to the identity map."""

    pass


class NotFoundError(DocMapperError):
    """Raised when a stored document is not found."""

    def __init__(self, resource_type: str, resource_id: str):
        message = f"{resource_type} with key '{resource_id}' not found"
        super().__init__(message)
        self.resource_type = resource_type
        self.resource_id = resource_id


class DuplicateError(DocMapperError):
    """Raised when inserting a document under a key that is already taken."""

    def __init__(self, resource_type: str, field: str, value: str):
        message = f"{resource_type} with {field} '{value}' already exists"
        super().__init__(message)
        self.resource_type = resource_type
        self.field = field
        self.value = value


class DatabaseError(DocMapperError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error
