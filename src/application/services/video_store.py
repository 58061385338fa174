"""Video record persistence with a read-through advisory cache."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from src.commons.infrastructure.cache import CacheBase, CacheKeys
from src.commons.infrastructure.documentdb import (
    DocumentDBBase,
    DocumentDBError,
    DuplicateDocumentError,
)
from src.commons.settings.models import CacheSettings, DocumentDBSettings
from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import DuplicateVideoException, PersistenceException
from src.domain.models import VideoRecord, VideoStatus

ACTIVE_STATUSES = [
    VideoStatus.QUEUED.value,
    VideoStatus.IN_PROGRESS.value,
    VideoStatus.READY.value,
]


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except DocumentDBError as e:
        raise PersistenceException(operation, e.reason) from e


class VideoRecordStore:
    """CRUD for video records over the document database.

    The document database is the source of truth. Lookups by internal id,
    by lesson, and the ready-only course list go through the cache; anything
    used for reconciliation or uniqueness checks always reads the store.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        cache: CacheBase,
        doc_settings: DocumentDBSettings,
        cache_settings: CacheSettings,
    ) -> None:
        self._doc_db = document_db
        self._cache = cache
        self._collection = doc_settings.collections.videos
        self._video_ttl = cache_settings.video_ttl_seconds
        self._list_ttl = cache_settings.course_list_ttl_seconds
        self._logger = get_logger(__name__)

    # =========================================================================
    # Setup
    # =========================================================================

    async def ensure_indexes(self) -> None:
        """Create the indexes that back the uniqueness rules."""
        with _store_errors("ensure_indexes"):
            await self._doc_db.create_index(
                self._collection,
                [("provider_video_id", 1)],
                unique=True,
                name="uniq_provider_video_id",
            )
            await self._doc_db.create_index(
                self._collection,
                [("course_id", 1), ("lesson_id", 1)],
                unique=True,
                name="uniq_active_lesson_video",
                partial_filter={"status": {"$in": ACTIVE_STATUSES}},
            )
            await self._doc_db.create_index(
                self._collection, [("status", 1)], name="idx_status"
            )
            await self._doc_db.create_index(
                self._collection, [("created_at", -1)], name="idx_created_at"
            )
        self._logger.info(
            "Video indexes ensured", extra={"collection": self._collection}
        )

    # =========================================================================
    # Writes
    # =========================================================================

    @timed
    async def create(self, record: VideoRecord) -> VideoRecord:
        """Insert a new record.

        Raises:
            DuplicateVideoException: If the lesson already has an active
                record or the provider id is taken.
            PersistenceException: If the store is unavailable.
        """
        try:
            await self._doc_db.insert(self._collection, record.to_document())
        except DuplicateDocumentError as e:
            raise DuplicateVideoException(record.course_id, record.lesson_id) from e
        except DocumentDBError as e:
            raise PersistenceException("create", e.reason) from e
        self._logger.info(
            "Video record created",
            extra={
                "video_id": record.id,
                "provider_video_id": record.provider_video_id,
                "course_id": record.course_id,
                "lesson_id": record.lesson_id,
            },
        )
        return record

    @timed
    async def save_if_unchanged(
        self,
        previous: VideoRecord,
        updated: VideoRecord,
    ) -> VideoRecord | None:
        """Write ``updated`` if the stored record is still the one that was read.

        The write is conditional on ``previous.version`` and bumps it, so any
        other save in between (same status or not) makes this one miss.

        Args:
            previous: Record as it was read before the change.
            updated: Changed record to persist.

        Returns:
            The stored record carrying its new version, or None if a
            concurrent write got there first.
        """
        stored = updated.model_copy(update={"version": previous.version + 1})
        updates = stored.to_document()
        updates.pop("id", None)
        updates.pop("created_at", None)
        with _store_errors("save_if_unchanged"):
            matched = await self._doc_db.update_where(
                self._collection,
                {"id": previous.id, "version": previous.version},
                updates,
            )
        return stored if matched else None

    async def delete(self, record: VideoRecord) -> bool:
        with _store_errors("delete"):
            deleted = await self._doc_db.delete(self._collection, record.id)
        await self.invalidate(record)
        return deleted

    async def invalidate(self, record: VideoRecord) -> None:
        """Drop every cached copy of the record."""
        await self._cache.delete(
            *CacheKeys.for_record(record.id, record.course_id, record.lesson_id)
        )

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_by_id(
        self,
        video_id: str,
        *,
        cached: bool = True,
    ) -> VideoRecord | None:
        """Load a record by internal id.

        Pass ``cached=False`` before a conditional save; a cached copy may
        carry an old version.
        """
        key = CacheKeys.video(video_id)
        if cached:
            hit = await self._cache.get_json(key)
            if hit is not None:
                return VideoRecord.model_validate(hit)

        with _store_errors("get_by_id"):
            doc = await self._doc_db.find_by_id(self._collection, video_id)
        if doc is None:
            return None
        record = VideoRecord.from_document(doc)
        await self._cache.set_json(key, record.model_dump(mode="json"), self._video_ttl)
        return record

    async def get_by_provider_id(self, provider_video_id: str) -> VideoRecord | None:
        with _store_errors("get_by_provider_id"):
            doc = await self._doc_db.find_one(
                self._collection, {"provider_video_id": provider_video_id}
            )
        return VideoRecord.from_document(doc) if doc else None

    async def find_active_for_lesson(
        self,
        course_id: str,
        lesson_id: str,
    ) -> VideoRecord | None:
        """Uncached lookup of the lesson's queued, in-progress or ready record."""
        with _store_errors("find_active_for_lesson"):
            doc = await self._doc_db.find_one(
                self._collection,
                {
                    "course_id": course_id,
                    "lesson_id": lesson_id,
                    "status": {"$in": ACTIVE_STATUSES},
                },
            )
        return VideoRecord.from_document(doc) if doc else None

    async def get_lesson_video(
        self,
        course_id: str,
        lesson_id: str,
    ) -> VideoRecord | None:
        key = CacheKeys.lesson_video(course_id, lesson_id)
        cached = await self._cache.get_json(key)
        if cached is not None:
            return VideoRecord.model_validate(cached)

        record = await self.find_active_for_lesson(course_id, lesson_id)
        if record is not None:
            await self._cache.set_json(
                key, record.model_dump(mode="json"), self._video_ttl
            )
        return record

    async def list_course_videos(
        self,
        course_id: str,
        include_not_ready: bool = False,
        limit: int = 1000,
    ) -> list[VideoRecord]:
        """List a course's videos, oldest first.

        Only the ready-only listing is cached.
        """
        key = CacheKeys.course_videos(course_id)
        if not include_not_ready:
            cached = await self._cache.get_json(key)
            if cached is not None:
                return [VideoRecord.model_validate(item) for item in cached]

        filters: dict[str, Any] = {"course_id": course_id}
        if not include_not_ready:
            filters["status"] = VideoStatus.READY.value
        with _store_errors("list_course_videos"):
            docs = await self._doc_db.find(
                self._collection, filters, limit=limit, sort=[("created_at", 1)]
            )
        records = [VideoRecord.from_document(doc) for doc in docs]

        if not include_not_ready:
            await self._cache.set_json(
                key,
                [record.model_dump(mode="json") for record in records],
                self._list_ttl,
            )
        return records

    async def list_by_status(
        self,
        statuses: Iterable[VideoStatus],
        limit: int = 1000,
    ) -> list[VideoRecord]:
        with _store_errors("list_by_status"):
            docs = await self._doc_db.find(
                self._collection,
                {"status": {"$in": [status.value for status in statuses]}},
                limit=limit,
                sort=[("created_at", 1)],
            )
        return [VideoRecord.from_document(doc) for doc in docs]

    async def list_stale_queued(
        self,
        older_than: datetime,
        limit: int = 1000,
    ) -> list[VideoRecord]:
        """Queued records created before ``older_than`` that never progressed."""
        with _store_errors("list_stale_queued"):
            docs = await self._doc_db.find(
                self._collection,
                {
                    "status": VideoStatus.QUEUED.value,
                    "processing_progress": 0,
                    "created_at": {"$lt": older_than},
                },
                limit=limit,
                sort=[("created_at", 1)],
            )
        return [VideoRecord.from_document(doc) for doc in docs]

    async def existing_provider_ids(self, provider_video_ids: list[str]) -> set[str]:
        """Return the subset of provider ids that have a record."""
        if not provider_video_ids:
            return set()
        with _store_errors("existing_provider_ids"):
            docs = await self._doc_db.find(
                self._collection,
                {"provider_video_id": {"$in": provider_video_ids}},
                limit=len(provider_video_ids),
            )
        return {doc["provider_video_id"] for doc in docs}
