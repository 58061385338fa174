"""Unit tests for status reconciliation."""

import asyncio
import copy
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.application.services.post_commit import PostCommitPipeline
from src.application.services.reconciler import ReconcileResult, StatusReconciler
from src.application.services.video_store import VideoRecordStore
from src.commons.infrastructure.base import HealthStatus
from src.commons.infrastructure.cache import NullCache
from src.commons.infrastructure.documentdb import DocumentDBBase
from src.commons.settings.models import CacheSettings, DocumentDBSettings
from src.domain.exceptions import PersistenceException, VideoNotFoundException
from src.domain.models import StatusReport, VideoRecord, VideoStatus

CREATED = datetime(2026, 5, 4, 9, 0, tzinfo=UTC)
NOW = datetime(2026, 5, 4, 9, 10, tzinfo=UTC)


def make_record(**overrides) -> VideoRecord:
    data = {
        "id": "rec-1",
        "provider_video_id": "uid-1",
        "course_id": "course-1",
        "lesson_id": "lesson-1",
        "title": "Intro",
        "created_at": CREATED,
        "updated_at": CREATED,
    }
    data.update(overrides)
    return VideoRecord(**data)


def save_outcomes(*wins: bool):
    """Side effect for ``save_if_unchanged``: False means a concurrent write won."""
    results = iter(wins)

    def save(previous: VideoRecord, updated: VideoRecord) -> VideoRecord | None:
        return updated if next(results) else None

    return save


@pytest.fixture
def mock_store():
    store = MagicMock()
    store.get_by_provider_id = AsyncMock(return_value=make_record())
    store.save_if_unchanged = AsyncMock(side_effect=lambda previous, updated: updated)
    return store


@pytest.fixture
def mock_post_commit():
    pipeline = MagicMock()
    pipeline.run = AsyncMock(return_value=[])
    return pipeline


@pytest.fixture
def reconciler(mock_store, mock_post_commit):
    return StatusReconciler(
        store=mock_store,
        post_commit=mock_post_commit,
        max_attempts=3,
        clock=lambda: NOW,
    )


class TestReconcile:
    """Tests for StatusReconciler.reconcile."""

    async def test_applies_ready_report(self, reconciler, mock_store, mock_post_commit):
        report = StatusReport(
            provider_video_id="uid-1",
            state=VideoStatus.READY,
            duration=321.0,
            playback_hls_url="https://cdn/v.m3u8",
        )

        result = await reconciler.reconcile(report)

        assert result.applied is True
        assert result.status_changed is True
        assert result.record.status == VideoStatus.READY
        assert result.record.processing_progress == 100
        assert result.record.updated_at == NOW

        previous, saved = mock_store.save_if_unchanged.await_args.args
        assert previous.status == VideoStatus.QUEUED
        assert saved == result.record
        mock_post_commit.run.assert_awaited_once_with(
            result.record, previous=result.previous
        )

    async def test_terminal_record_not_applied(self, reconciler, mock_store):
        mock_store.get_by_provider_id.return_value = make_record(
            status=VideoStatus.READY, processing_progress=100
        )

        result = await reconciler.reconcile(
            StatusReport(provider_video_id="uid-1", state=VideoStatus.IN_PROGRESS)
        )

        assert result.applied is False
        assert result.status_changed is False
        assert result.record.status == VideoStatus.READY
        mock_store.save_if_unchanged.assert_awaited_once()

    async def test_report_without_state_keeps_status(self, reconciler, mock_store):
        mock_store.get_by_provider_id.return_value = make_record(
            status=VideoStatus.IN_PROGRESS
        )

        result = await reconciler.reconcile(
            StatusReport(provider_video_id="uid-1", progress=64.0)
        )

        assert result.applied is True
        assert result.record.status == VideoStatus.IN_PROGRESS
        assert result.record.processing_progress == 64

    async def test_unknown_provider_id(self, reconciler, mock_store, mock_post_commit):
        mock_store.get_by_provider_id.return_value = None

        with pytest.raises(VideoNotFoundException) as exc_info:
            await reconciler.reconcile(StatusReport(provider_video_id="uid-x"))

        assert exc_info.value.video_id == "uid-x"
        assert exc_info.value.by == "provider_video_id"
        mock_store.save_if_unchanged.assert_not_awaited()
        mock_post_commit.run.assert_not_awaited()

    async def test_retries_after_concurrent_update(self, reconciler, mock_store):
        stale = make_record(status=VideoStatus.QUEUED)
        fresh = make_record(status=VideoStatus.IN_PROGRESS, processing_progress=80)
        mock_store.get_by_provider_id.side_effect = [stale, fresh]
        mock_store.save_if_unchanged.side_effect = save_outcomes(False, True)

        result = await reconciler.reconcile(
            StatusReport(provider_video_id="uid-1", state=VideoStatus.READY)
        )

        assert mock_store.save_if_unchanged.await_count == 2
        assert result.previous == fresh
        assert result.record.status == VideoStatus.READY

    async def test_retry_merges_on_top_of_winner(self, reconciler, mock_store):
        stale = make_record(status=VideoStatus.IN_PROGRESS)
        winner = make_record(status=VideoStatus.ERROR, error_code="ERR_X")
        mock_store.get_by_provider_id.side_effect = [stale, winner]
        mock_store.save_if_unchanged.side_effect = save_outcomes(False, True)

        result = await reconciler.reconcile(
            StatusReport(provider_video_id="uid-1", state=VideoStatus.READY)
        )

        assert result.applied is False
        assert result.record.status == VideoStatus.ERROR

    async def test_gives_up_after_max_attempts(
        self, reconciler, mock_store, mock_post_commit
    ):
        mock_store.save_if_unchanged.side_effect = lambda previous, updated: None

        with pytest.raises(PersistenceException) as exc_info:
            await reconciler.reconcile(
                StatusReport(provider_video_id="uid-1", state=VideoStatus.READY)
            )

        assert exc_info.value.operation == "reconcile"
        assert mock_store.save_if_unchanged.await_count == 3
        mock_post_commit.run.assert_not_awaited()

    async def test_store_errors_propagate(self, reconciler, mock_store):
        mock_store.get_by_provider_id.side_effect = PersistenceException(
            "get_by_provider_id", "timeout"
        )

        with pytest.raises(PersistenceException):
            await reconciler.reconcile(StatusReport(provider_video_id="uid-1"))


class TestReconcileResult:
    def test_status_changed(self):
        before = make_record()
        after = before.model_copy(update={"status": VideoStatus.READY})
        changed = ReconcileResult(record=after, previous=before, applied=True)
        same = ReconcileResult(record=before, previous=before, applied=True)

        assert changed.status_changed
        assert not same.status_changed


class InMemoryDocumentDB(DocumentDBBase):
    """Single-collection document store that can hold readers at a barrier.

    The first ``held_reads`` calls to :meth:`find_one` take their snapshot and
    then wait until all of them have read, so every held caller works from
    the same stored version.
    """

    def __init__(self, held_reads: int = 0) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self._held_reads = held_reads
        self._barrier = asyncio.Barrier(held_reads) if held_reads else None

    @staticmethod
    def _matches(doc: dict[str, Any], filters: dict[str, Any]) -> bool:
        return all(doc.get(field) == value for field, value in filters.items())

    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        self.docs[document["id"]] = copy.deepcopy(document)
        return document["id"]

    async def find_by_id(
        self, collection: str, document_id: str
    ) -> dict[str, Any] | None:
        doc = self.docs.get(document_id)
        return copy.deepcopy(doc) if doc else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        found = [d for d in self.docs.values() if self._matches(d, filters)]
        return copy.deepcopy(found[skip : skip + limit])

    async def find_one(
        self, collection: str, filters: dict[str, Any]
    ) -> dict[str, Any] | None:
        snapshot = next(
            (copy.deepcopy(d) for d in self.docs.values() if self._matches(d, filters)),
            None,
        )
        if self._held_reads:
            self._held_reads -= 1
            await self._barrier.wait()
        return snapshot

    async def update_where(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        for doc in self.docs.values():
            if self._matches(doc, filters):
                doc.update(copy.deepcopy(updates))
                return True
        return False

    async def delete(self, collection: str, document_id: str) -> bool:
        return self.docs.pop(document_id, None) is not None

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
        partial_filter: dict[str, Any] | None = None,
    ) -> str:
        return name or "idx"

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.0)

    async def close(self) -> None:
        pass


class TestConcurrentDeliveries:
    """Two deliveries for the same asset that read the same stored record."""

    async def test_same_status_reports_both_land(self):
        doc_db = InMemoryDocumentDB(held_reads=2)
        store = VideoRecordStore(
            doc_db, NullCache(), DocumentDBSettings(), CacheSettings()
        )
        await store.create(make_record(status=VideoStatus.IN_PROGRESS))
        reconciler = StatusReconciler(
            store=store, post_commit=PostCommitPipeline(), clock=lambda: NOW
        )
        with_details = StatusReport(
            provider_video_id="uid-1",
            state=VideoStatus.IN_PROGRESS,
            progress=50.0,
            duration=120.5,
            thumbnail_url="https://cdn/thumb.jpg",
        )
        progress_only = StatusReport(
            provider_video_id="uid-1", state=VideoStatus.IN_PROGRESS, progress=60.0
        )

        await asyncio.gather(
            reconciler.reconcile(progress_only), reconciler.reconcile(with_details)
        )

        stored = await store.get_by_id("rec-1")
        assert stored.status == VideoStatus.IN_PROGRESS
        assert stored.duration == 120.5
        assert stored.thumbnail_url == "https://cdn/thumb.jpg"
        assert stored.processing_progress in {50, 60}
        assert stored.version == 2

    async def test_stale_write_is_rejected_by_version(self):
        doc_db = InMemoryDocumentDB()
        store = VideoRecordStore(
            doc_db, NullCache(), DocumentDBSettings(), CacheSettings()
        )
        original = await store.create(make_record(status=VideoStatus.IN_PROGRESS))
        first = original.model_copy(update={"processing_progress": 10})
        second = original.model_copy(update={"processing_progress": 20})

        assert await store.save_if_unchanged(original, first) is not None
        assert await store.save_if_unchanged(original, second) is None
        assert doc_db.docs["rec-1"]["processing_progress"] == 10
        assert doc_db.docs["rec-1"]["version"] == 1
