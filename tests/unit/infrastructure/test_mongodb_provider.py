"""Unit tests for MongoDB document database provider."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from src.commons.infrastructure.documentdb import (
    DocumentDBError,
    DuplicateDocumentError,
    MongoDBDocumentDB,
)


def async_cursor(docs):
    """Build a Motor-like cursor yielding docs."""

    async def iterate():
        for doc in docs:
            yield doc

    cursor = MagicMock()
    cursor.sort = MagicMock(return_value=cursor)
    cursor.skip = MagicMock(return_value=cursor)
    cursor.limit = MagicMock(return_value=cursor)
    cursor.__aiter__ = lambda self: iterate()
    return cursor


class TestMongoDBDocumentDB:
    """Tests for MongoDBDocumentDB provider.

    These tests verify the ID mapping between the domain model 'id' and
    MongoDB's '_id' field, and the translation of driver errors.
    """

    @pytest.fixture
    def mock_motor_client(self):
        """Create a mock Motor client."""
        with patch(
            "src.commons.infrastructure.documentdb.mongodb_provider.AsyncIOMotorClient"
        ) as mock_client_class:
            mock_client = MagicMock()
            mock_db = MagicMock()
            mock_collection = MagicMock()

            mock_client.__getitem__ = MagicMock(return_value=mock_db)
            mock_db.__getitem__ = MagicMock(return_value=mock_collection)
            mock_client_class.return_value = mock_client

            yield {
                "client_class": mock_client_class,
                "client": mock_client,
                "db": mock_db,
                "collection": mock_collection,
            }

    @pytest.fixture
    def provider(self, mock_motor_client):
        return MongoDBDocumentDB(
            connection_string="mongodb://localhost:27017",
            database_name="test_db",
            timeout_ms=2500,
        )

    def test_client_timeouts(self, provider, mock_motor_client):
        kwargs = mock_motor_client["client_class"].call_args.kwargs
        assert kwargs["serverSelectionTimeoutMS"] == 2500
        assert kwargs["connectTimeoutMS"] == 2500
        assert kwargs["socketTimeoutMS"] == 2500
        assert kwargs["tz_aware"] is True

    # =========================================================================
    # Insert
    # =========================================================================

    async def test_insert_uses_id_as_mongodb_id(self, provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id="rec-1"))
        document = {"id": "rec-1", "provider_video_id": "uid-1"}

        result = await provider.insert("course_videos", document)

        stored = collection.insert_one.call_args.args[0]
        assert stored == {"_id": "rec-1", "provider_video_id": "uid-1"}
        assert document == {"id": "rec-1", "provider_video_id": "uid-1"}
        assert result == "rec-1"

    async def test_insert_duplicate_key(self, provider, mock_motor_client):
        mock_motor_client["collection"].insert_one = AsyncMock(
            side_effect=DuplicateKeyError("E11000 duplicate key")
        )

        with pytest.raises(DuplicateDocumentError) as exc_info:
            await provider.insert("course_videos", {"id": "rec-1"})

        assert exc_info.value.operation == "insert"

    async def test_insert_server_unavailable(self, provider, mock_motor_client):
        mock_motor_client["collection"].insert_one = AsyncMock(
            side_effect=ServerSelectionTimeoutError("no servers")
        )

        with pytest.raises(DocumentDBError) as exc_info:
            await provider.insert("course_videos", {"id": "rec-1"})

        assert not isinstance(exc_info.value, DuplicateDocumentError)
        assert "no servers" in exc_info.value.reason

    # =========================================================================
    # Reads
    # =========================================================================

    async def test_find_by_id(self, provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(return_value={"_id": "rec-1", "title": "T"})

        doc = await provider.find_by_id("course_videos", "rec-1")

        collection.find_one.assert_awaited_once_with({"_id": "rec-1"})
        assert doc == {"id": "rec-1", "title": "T"}

    async def test_find_one_maps_id_in_filters(self, provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(return_value=None)

        assert await provider.find_one("course_videos", {"id": "rec-1"}) is None
        collection.find_one.assert_awaited_once_with({"_id": "rec-1"})

    async def test_find_returns_id_field(self, provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        cursor = async_cursor([{"_id": "a", "status": "ready"}, {"_id": "b"}])
        collection.find = MagicMock(return_value=cursor)

        docs = await provider.find(
            "course_videos",
            {"course_id": "c1"},
            limit=10,
            sort=[("created_at", 1)],
        )

        assert docs == [{"id": "a", "status": "ready"}, {"id": "b"}]
        collection.find.assert_called_once_with({"course_id": "c1"})
        cursor.sort.assert_called_once_with([("created_at", 1)])
        cursor.limit.assert_called_once_with(10)

    # =========================================================================
    # Conditional update
    # =========================================================================

    async def test_update_where_sets_fields(self, provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))

        updated = await provider.update_where(
            "course_videos",
            {"id": "rec-1", "status": "queued"},
            {"id": "rec-1", "status": "ready"},
        )

        assert updated is True
        filters, update = collection.update_one.call_args.args
        assert filters == {"_id": "rec-1", "status": "queued"}
        assert update == {"$set": {"status": "ready"}}

    async def test_update_where_no_match(self, provider, mock_motor_client):
        mock_motor_client["collection"].update_one = AsyncMock(
            return_value=MagicMock(matched_count=0)
        )

        assert (
            await provider.update_where("course_videos", {"id": "x"}, {"a": 1})
            is False
        )

    # =========================================================================
    # Delete and indexes
    # =========================================================================

    async def test_delete(self, provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))

        assert await provider.delete("course_videos", "rec-1") is True
        collection.delete_one.assert_awaited_once_with({"_id": "rec-1"})

    async def test_delete_not_found(self, provider, mock_motor_client):
        mock_motor_client["collection"].delete_one = AsyncMock(
            return_value=MagicMock(deleted_count=0)
        )
        assert await provider.delete("course_videos", "rec-1") is False

    async def test_create_partial_unique_index(self, provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.create_index = AsyncMock(return_value="uniq_active_lesson_video")

        name = await provider.create_index(
            "course_videos",
            [("course_id", 1), ("lesson_id", 1)],
            unique=True,
            name="uniq_active_lesson_video",
            partial_filter={"status": {"$in": ["queued", "inprogress", "ready"]}},
        )

        assert name == "uniq_active_lesson_video"
        collection.create_index.assert_awaited_once_with(
            [("course_id", 1), ("lesson_id", 1)],
            unique=True,
            name="uniq_active_lesson_video",
            partialFilterExpression={
                "status": {"$in": ["queued", "inprogress", "ready"]}
            },
        )

    # =========================================================================
    # Health
    # =========================================================================

    async def test_health_check_healthy(self, provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(return_value={"ok": 1})

        status = await provider.health_check()

        assert status.healthy is True
        assert status.details == {"database": "test_db"}

    async def test_health_check_unhealthy(self, provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(
            side_effect=ServerSelectionTimeoutError("down")
        )

        status = await provider.health_check()

        assert status.healthy is False
        assert "down" in status.message
