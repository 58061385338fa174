"""MongoDB implementation of document database."""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from src.commons.infrastructure.base import HealthStatus
from src.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
    DuplicateDocumentError,
)


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError as e:
        raise DuplicateDocumentError(operation, str(e)) from e
    except (PyMongoError, TimeoutError) as e:
        raise DocumentDBError(operation, str(e)) from e


def _to_mongo(data: dict[str, Any]) -> dict[str, Any]:
    """Map the domain 'id' field to MongoDB's '_id'."""
    doc = data.copy()
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(doc: dict[str, Any]) -> dict[str, Any]:
    """Restore the domain 'id' field from '_id'."""
    result = dict(doc)
    if "_id" in result:
        result["id"] = str(result.pop("_id"))
    return result


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of document database.

    Uses Motor for async operations. Server selection and socket reads are
    bounded by ``timeout_ms`` so an unreachable server fails the request
    instead of hanging it.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
        timeout_ms: int = 5000,
    ) -> None:
        """Initialize MongoDB client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Name of the database to use.
            timeout_ms: Server selection, connect and socket timeout.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
            tz_aware=True,
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document.

        If the document has an 'id' field, it will be used as MongoDB's '_id'.
        This ensures consistency between the domain model ID and MongoDB's ID.
        """
        with _translate_errors("insert"):
            result = await self._db[collection].insert_one(_to_mongo(document))
        return str(result.inserted_id)

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID."""
        return await self.find_one(collection, {"_id": document_id})

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters.

        Returns documents with 'id' field restored from '_id'.
        """
        with _translate_errors("find"):
            cursor = self._db[collection].find(_to_mongo(filters))
            if sort:
                cursor = cursor.sort(sort)
            cursor = cursor.skip(skip).limit(limit)
            return [_from_mongo(doc) async for doc in cursor]

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find a single document matching filters.

        Returns the document with 'id' field restored from '_id'.
        """
        with _translate_errors("find_one"):
            doc = await self._db[collection].find_one(_to_mongo(filters))
        return _from_mongo(doc) if doc else None

    async def update_where(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Update the first document matching filters with ``$set``."""
        update_doc = updates.copy()
        update_doc.pop("id", None)
        with _translate_errors("update_where"):
            result = await self._db[collection].update_one(
                _to_mongo(filters),
                {"$set": update_doc},
            )
        return bool(result.matched_count > 0)

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document by its '_id'."""
        with _translate_errors("delete"):
            result = await self._db[collection].delete_one({"_id": document_id})
        return bool(result.deleted_count > 0)

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
        partial_filter: dict[str, Any] | None = None,
    ) -> str:
        """Create an index on the collection."""
        options: dict[str, Any] = {"unique": unique}
        if name:
            options["name"] = name
        if partial_filter:
            options["partialFilterExpression"] = partial_filter
        with _translate_errors("create_index"):
            index_name = await self._db[collection].create_index(fields, **options)
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MongoDB is healthy",
                details={"database": self._database_name},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
