"""Video management: lookups, stats, edits, deletion and provider sync."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from src.application.dtos.videos import (
    CourseVideoStats,
    DeleteVideoResponse,
    SyncSummary,
)
from src.application.services.reconciler import StatusReconciler
from src.application.services.video_store import VideoRecordStore
from src.commons.settings.models import UploadSettings
from src.commons.telemetry import get_logger
from src.domain.exceptions import (
    DomainException,
    InvalidInputException,
    PersistenceException,
    VideoNotFoundException,
)
from src.domain.models import VideoRecord, VideoStatus
from src.infrastructure.streaming import ProviderAsset, StreamingProviderBase

_MAX_EDIT_ATTEMPTS = 3


class VideoManagementService:
    """Administrative operations on lesson videos."""

    def __init__(
        self,
        store: VideoRecordStore,
        provider: StreamingProviderBase,
        reconciler: StatusReconciler,
        upload_settings: UploadSettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._provider = provider
        self._reconciler = reconciler
        self._ticket_ttl = timedelta(seconds=upload_settings.ticket_ttl_seconds)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._logger = get_logger(__name__)

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_video(self, video_id: str) -> VideoRecord:
        record = await self._store.get_by_id(video_id)
        if record is None:
            raise VideoNotFoundException(video_id)
        return record

    async def get_lesson_video(self, course_id: str, lesson_id: str) -> VideoRecord:
        record = await self._store.get_lesson_video(course_id, lesson_id)
        if record is None:
            raise VideoNotFoundException(f"{course_id}/{lesson_id}", by="lesson")
        return record

    async def list_course_videos(
        self,
        course_id: str,
        include_not_ready: bool = False,
    ) -> list[VideoRecord]:
        return await self._store.list_course_videos(
            course_id, include_not_ready=include_not_ready
        )

    async def get_course_stats(self, course_id: str) -> CourseVideoStats:
        """Count a course's videos by status.

        ``total_duration`` sums ready videos only.
        """
        records = await self._store.list_course_videos(
            course_id, include_not_ready=True
        )
        stats = CourseVideoStats(course_id=course_id, total=len(records))
        for record in records:
            if record.status == VideoStatus.READY:
                stats.ready += 1
                stats.total_duration += record.duration or 0.0
            elif record.status == VideoStatus.IN_PROGRESS:
                stats.processing += 1
            elif record.status == VideoStatus.QUEUED:
                stats.queued += 1
            else:
                stats.error += 1
        return stats

    # =========================================================================
    # Edits
    # =========================================================================

    async def update_video(
        self,
        video_id: str,
        *,
        updated_by: str,
        title: str | None = None,
        description: str | None = None,
    ) -> VideoRecord:
        """Change a video's title and/or description.

        Fields left as None keep their stored value. A blank description
        clears it; a blank title is rejected. Status and playback fields
        belong to the provider and cannot be edited here.

        Raises:
            InvalidInputException: If nothing would change or the title
                is blank.
            VideoNotFoundException: If the record does not exist.
            PersistenceException: If concurrent writes keep winning.
        """
        changes: dict[str, str | None] = {}
        if title is not None:
            title = title.strip()
            if not title:
                raise InvalidInputException("Title cannot be blank", field="title")
            changes["title"] = title
        if description is not None:
            changes["description"] = description.strip() or None
        if not changes:
            raise InvalidInputException("Provide a title or a description to update")

        for _ in range(_MAX_EDIT_ATTEMPTS):
            current = await self._store.get_by_id(video_id, cached=False)
            if current is None:
                raise VideoNotFoundException(video_id)

            edited = current.model_copy(
                update={**changes, "updated_at": self._clock()}
            )
            saved = await self._store.save_if_unchanged(current, edited)
            if saved is None:
                continue

            await self._store.invalidate(saved)
            self._logger.info(
                "Video details updated",
                extra={
                    "video_id": saved.id,
                    "fields": sorted(changes),
                    "updated_by": updated_by,
                },
            )
            return saved

        raise PersistenceException(
            "update_video",
            f"record kept changing after {_MAX_EDIT_ATTEMPTS} attempts",
        )

    # =========================================================================
    # Deletion
    # =========================================================================

    async def delete_video(
        self,
        video_id: str,
        deleted_by: str,
        delete_from_provider: bool = True,
    ) -> DeleteVideoResponse:
        """Delete a record and, by default, its provider asset.

        The provider asset goes first; if that call fails the record is
        kept so the delete can be retried.

        Raises:
            VideoNotFoundException: If the record does not exist.
            ProviderException: If the provider delete fails.
        """
        record = await self.get_video(video_id)

        provider_deleted = False
        if delete_from_provider:
            provider_deleted = await self._provider.delete_asset(
                record.provider_video_id
            )

        deleted = await self._store.delete(record)
        self._logger.info(
            "Video deleted",
            extra={
                "video_id": record.id,
                "provider_video_id": record.provider_video_id,
                "deleted_by": deleted_by,
                "provider_deleted": provider_deleted,
            },
        )
        return DeleteVideoResponse(
            id=record.id,
            deleted=deleted,
            provider_deleted=provider_deleted,
            message="Video deleted" if deleted else "Video record was already gone",
        )

    # =========================================================================
    # Provider sync
    # =========================================================================

    async def sync_video_status(self, video_id: str) -> VideoRecord:
        """Pull the provider's view of one video and reconcile it."""
        record = await self.get_video(video_id)
        asset = await self._provider.get_asset_status(record.provider_video_id)
        result = await self._reconciler.reconcile(asset.to_status_report())
        return result.record

    async def sync_processing_videos(self) -> SyncSummary:
        """Reconcile every queued or in-progress video from the provider.

        A failure on one video is logged and does not stop the rest.
        """
        records = await self._store.list_by_status(
            [VideoStatus.QUEUED, VideoStatus.IN_PROGRESS]
        )
        synced = 0
        failed = 0
        for record in records:
            try:
                asset = await self._provider.get_asset_status(record.provider_video_id)
                await self._reconciler.reconcile(asset.to_status_report())
                synced += 1
            except DomainException as e:
                failed += 1
                self._logger.warning(
                    "Failed to sync video status",
                    extra={
                        "video_id": record.id,
                        "provider_video_id": record.provider_video_id,
                        "error": str(e),
                    },
                )
        self._logger.info(
            "Processing videos synced",
            extra={"checked": len(records), "synced": synced, "failed": failed},
        )
        return SyncSummary(checked=len(records), synced=synced, failed=failed)

    async def find_stale_uploads(self) -> list[VideoRecord]:
        """Queued videos whose upload ticket expired without any progress."""
        cutoff = self._clock() - self._ticket_ttl
        return await self._store.list_stale_queued(older_than=cutoff)

    async def find_orphaned_assets(self) -> list[ProviderAsset]:
        """Provider assets that no record points to."""
        assets = await self._provider.list_assets()
        known = await self._store.existing_provider_ids(
            [asset.provider_video_id for asset in assets]
        )
        return [asset for asset in assets if asset.provider_video_id not in known]
