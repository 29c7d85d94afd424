"""Domain, document and storage models for docmapper."""

from docmapper.models.base import Base, TimestampMixin
from docmapper.models.document import Document
from docmapper.models.model import Model
from docmapper.models.record import DocumentRecord

__all__ = ["Base", "TimestampMixin", "Document", "Model", "DocumentRecord"]
