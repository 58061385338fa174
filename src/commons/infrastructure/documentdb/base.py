"""Abstract base class for document database operations."""

from abc import ABC, abstractmethod
from typing import Any

from src.commons.infrastructure.base import HealthStatus


class DocumentDBError(Exception):
    """Raised when the document database is unreachable or rejects a call."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class DuplicateDocumentError(DocumentDBError):
    """Raised when a write violates a unique index."""


class DocumentDBBase(ABC):
    """Abstract base class for document database operations.

    Documents carry their identifier in an ``id`` field; implementations map
    it to whatever primary key the backend uses. All failures surface as
    :class:`DocumentDBError`.
    """

    @abstractmethod
    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document.

        Args:
            collection: Collection/table name.
            document: Document to insert.

        Returns:
            Generated document ID.

        Raises:
            DuplicateDocumentError: If a unique index rejects the document.
        """

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID.

        Args:
            collection: Collection/table name.
            document_id: Document ID to find.

        Returns:
            Document if found, None otherwise.
        """

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters.

        Args:
            collection: Collection/table name.
            filters: Query filters.
            skip: Number of documents to skip.
            limit: Maximum documents to return.
            sort: Sort order as [(field, direction)].
                  Direction: 1 for ascending, -1 for descending.

        Returns:
            List of matching documents.
        """

    @abstractmethod
    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find a single document matching filters."""

    @abstractmethod
    async def update_where(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Atomically update the single document matching filters.

        Used for compare-and-set writes: the filter includes the values the
        caller last read, so a concurrent writer makes the match fail.

        Args:
            collection: Collection/table name.
            filters: Query filters. ``id`` is mapped like in other calls.
            updates: Fields to set.

        Returns:
            True if a document matched, False otherwise.
        """

    @abstractmethod
    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document.

        Returns:
            True if deleted, False if not found.
        """

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
        partial_filter: dict[str, Any] | None = None,
    ) -> str:
        """Create an index on the collection.

        Args:
            collection: Collection/table name.
            fields: Index fields [(field, direction)].
            unique: Whether index should be unique.
            name: Optional index name.
            partial_filter: Only index documents matching this filter.

        Returns:
            Index name.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health.

        Returns:
            Health status with latency info.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release client resources."""
