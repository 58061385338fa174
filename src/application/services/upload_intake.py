"""Upload intake: validate a request and issue a resumable upload ticket."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from src.application.dtos.uploads import CreateUploadRequest, UploadTicketResponse
from src.application.services.post_commit import PostCommitPipeline
from src.application.services.video_store import VideoRecordStore
from src.commons.settings.models import StreamingSettings, UploadSettings
from src.commons.telemetry import LogContext, get_logger
from src.domain.exceptions import (
    DuplicateVideoException,
    InvalidInputException,
    PersistenceException,
)
from src.domain.models import VideoRecord, VideoStatus
from src.domain.value_objects import VideoFilename
from src.infrastructure.streaming import StreamingProviderBase, UploadTicketOptions


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _required(value: str | None, field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidInputException(f"{field} is required", field=field)
    return cleaned


def _format_size(size_bytes: int) -> str:
    gib = size_bytes / 1024**3
    if gib >= 1:
        return f"{gib:g}GB"
    return f"{size_bytes / 1024**2:g}MB"


class UploadIntakeService:
    """Issues upload tickets and records the provisional video.

    Every check runs locally before the provider is contacted, so a
    rejected request costs no provider quota. A record is only written
    once the provider has issued the ticket.
    """

    def __init__(
        self,
        store: VideoRecordStore,
        provider: StreamingProviderBase,
        post_commit: PostCommitPipeline,
        upload_settings: UploadSettings,
        streaming_settings: StreamingSettings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the intake service.

        Args:
            store: Video record store.
            provider: Streaming provider client.
            post_commit: Steps to run after the record is stored.
            upload_settings: File type, size and ticket lifetime rules.
            streaming_settings: Provider-side asset limits.
            clock: Source of the current UTC time.
        """
        self._store = store
        self._provider = provider
        self._post_commit = post_commit
        self._uploads = upload_settings
        self._streaming = streaming_settings
        self._clock = clock
        self._logger = get_logger(__name__)

    async def create_upload(
        self,
        request: CreateUploadRequest,
        uploaded_by: str,
    ) -> UploadTicketResponse:
        """Validate the request, obtain a ticket and store a queued record.

        Args:
            request: Upload request from the client.
            uploaded_by: Identity of the admin requesting the upload.

        Returns:
            Ticket with upload URL, provider id, record id and expiry.

        Raises:
            InvalidInputException: If the request fails validation.
            DuplicateVideoException: If the lesson already has a video.
            ProviderException: If the provider cannot issue a ticket.
            PersistenceException: If the record cannot be stored.
        """
        filename = _required(request.filename, "filename")
        course_id = _required(request.course_id, "courseId")
        lesson_id = _required(request.lesson_id, "lessonId")
        title = _required(request.title, "title")
        description = (request.description or "").strip() or None

        if request.file_size <= 0:
            raise InvalidInputException(
                "fileSize must be a positive integer", field="fileSize"
            )

        VideoFilename.parse(filename, self._uploads.allowed_extensions)

        if request.file_size > self._uploads.max_file_size_bytes:
            limit = _format_size(self._uploads.max_file_size_bytes)
            raise InvalidInputException(
                f"File size exceeds maximum allowed size of {limit}",
                field="fileSize",
            )

        existing = await self._store.find_active_for_lesson(course_id, lesson_id)
        if existing is not None:
            raise DuplicateVideoException(course_id, lesson_id, existing_id=existing.id)

        issued_at = self._clock()
        expires_at = issued_at + timedelta(seconds=self._uploads.ticket_ttl_seconds)

        ticket = await self._provider.issue_upload_ticket(
            UploadTicketOptions(
                max_duration_seconds=self._streaming.max_duration_seconds,
                expires_at=expires_at,
                meta={
                    "courseId": course_id,
                    "lessonId": lesson_id,
                    "title": title,
                    "uploadedBy": uploaded_by,
                    "uploadedAt": issued_at.isoformat(),
                },
                require_signed_urls=self._streaming.require_signed_urls,
            )
        )

        record = VideoRecord(
            provider_video_id=ticket.provider_video_id,
            course_id=course_id,
            lesson_id=lesson_id,
            title=title,
            description=description,
            status=VideoStatus.QUEUED,
            processing_progress=0,
            metadata={
                "filename": filename,
                "file_size": request.file_size,
                "uploaded_by": uploaded_by,
                "uploaded_at": issued_at.isoformat(),
            },
            created_at=issued_at,
            updated_at=issued_at,
        )

        with LogContext(provider_video_id=ticket.provider_video_id):
            try:
                await self._store.create(record)
            except (PersistenceException, DuplicateVideoException):
                self._logger.error(
                    "Ticket issued but record not stored, provider asset orphaned",
                    extra={
                        "provider_video_id": ticket.provider_video_id,
                        "course_id": course_id,
                        "lesson_id": lesson_id,
                    },
                )
                raise

            await self._post_commit.run(record)

            self._logger.info(
                "Upload ticket issued",
                extra={
                    "video_id": record.id,
                    "course_id": course_id,
                    "lesson_id": lesson_id,
                    "uploaded_by": uploaded_by,
                    "expires_at": expires_at.isoformat(),
                },
            )

        return UploadTicketResponse(
            tus_url=ticket.upload_url,
            video_id=ticket.provider_video_id,
            db_video_id=record.id,
            expires_at=expires_at,
        )
