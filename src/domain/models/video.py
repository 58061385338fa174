"""Lesson video record domain model."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Self
from uuid import uuid4

from pydantic import BaseModel, Field

# Provider states that precede transcoding
_QUEUED_ALIASES = frozenset({"pendingupload", "downloading"})


class VideoStatus(str, Enum):
    """Processing status of a lesson video, as reported by the provider."""

    QUEUED = "queued"  # Ticket issued, waiting for bytes or transcoding slot
    IN_PROGRESS = "inprogress"  # Provider is transcoding
    READY = "ready"  # Playable
    ERROR = "error"  # Provider gave up

    @classmethod
    def parse(cls, raw: str) -> "VideoStatus":
        """Map a provider state string onto a status.

        Raises:
            ValueError: If the state is not recognised.
        """
        value = raw.strip().lower()
        if value in _QUEUED_ALIASES:
            return cls.QUEUED
        return cls(value)

    @property
    def is_terminal(self) -> bool:
        """Terminal states absorb every later report."""
        return self in {VideoStatus.READY, VideoStatus.ERROR}

    def can_transition_to(self, new_status: "VideoStatus") -> bool:
        """Check whether a reported status may replace this one.

        Re-applying the current status is always allowed so that duplicate
        deliveries stay idempotent.
        """
        if new_status == self:
            return True
        if self.is_terminal:
            return False
        if self == VideoStatus.IN_PROGRESS:
            return new_status != VideoStatus.QUEUED
        return True


class StatusReport(BaseModel):
    """Provider-agnostic snapshot of an asset's processing state.

    Built from webhook payloads and from pulled provider status alike.
    ``None`` always means "not reported", never "clear the stored value".
    """

    provider_video_id: str
    state: VideoStatus | None = None
    progress: float | None = None
    duration: float | None = None
    thumbnail_url: str | None = None
    playback_hls_url: str | None = None
    playback_dash_url: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    meta: dict[str, Any] | None = None


class VideoRecord(BaseModel):
    """A lesson's video asset hosted by the streaming provider.

    Created in ``queued`` state as soon as an upload ticket is issued. After
    that, provider reports change it through :meth:`apply_report`, and an
    administrator can edit its title and description or delete it.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Internal UUID for this record",
    )
    provider_video_id: str = Field(description="Streaming provider asset UID")
    course_id: str = Field(description="Owning course")
    lesson_id: str = Field(description="Lesson identifier within the course")
    title: str = Field(min_length=1, description="Video title")
    description: str | None = Field(default=None, description="Optional description")
    status: VideoStatus = Field(default=VideoStatus.QUEUED)
    processing_progress: int = Field(default=0, ge=0, le=100)
    duration: float | None = Field(default=None, ge=0, description="Seconds")
    thumbnail_url: str | None = None
    playback_hls_url: str | None = None
    playback_dash_url: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    version: int = Field(
        default=0, ge=0, description="Bumped by the store on every conditional save"
    )

    def apply_report(
        self, report: StatusReport, *, now: datetime | None = None
    ) -> Self:
        """Merge a provider status report into a new record instance.

        Every field is either overwritten with the reported value or left
        as stored, so applying the same report twice yields the same record
        apart from ``updated_at``. Terminal records ignore reports that
        would move them to another state.

        Args:
            report: Status reported by the provider.
            now: Timestamp for ``updated_at``. Defaults to the current time.

        Returns:
            A new VideoRecord with the merged state.
        """
        timestamp = now or datetime.now(UTC)
        new_status = report.state or self.status

        if not self.status.can_transition_to(new_status):
            return self.model_copy(update={"updated_at": timestamp})

        updates: dict[str, Any] = {"status": new_status, "updated_at": timestamp}

        if report.progress is not None:
            updates["processing_progress"] = _clamp_progress(report.progress)
        elif new_status == VideoStatus.READY:
            updates["processing_progress"] = 100

        if report.duration is not None and report.duration >= 0:
            updates["duration"] = report.duration
        if report.thumbnail_url:
            updates["thumbnail_url"] = report.thumbnail_url
        if report.playback_hls_url:
            updates["playback_hls_url"] = report.playback_hls_url
        if report.playback_dash_url:
            updates["playback_dash_url"] = report.playback_dash_url

        if new_status == VideoStatus.ERROR:
            code = report.error_code or self.error_code
            updates["error_code"] = code
            updates["error_message"] = (
                report.error_message
                or self.error_message
                or code
                or "Video processing failed"
            )

        if report.meta is not None:
            updates["metadata"] = {**self.metadata, "provider_meta": report.meta}

        return self.model_copy(update=updates)

    def to_document(self) -> dict[str, Any]:
        """Serialize for the document store."""
        doc = self.model_dump()
        doc["status"] = self.status.value
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Self:
        """Build a record from a stored document."""
        return cls.model_validate(doc)


def _clamp_progress(value: float) -> int:
    return max(0, min(100, round(value)))
