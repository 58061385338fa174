"""Document database abstractions and implementations."""

from src.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
    DuplicateDocumentError,
)
from src.commons.infrastructure.documentdb.mongodb_provider import MongoDBDocumentDB

__all__ = [
    # Base classes
    "DocumentDBBase",
    "DocumentDBError",
    "DuplicateDocumentError",
    # Implementations
    "MongoDBDocumentDB",
]
