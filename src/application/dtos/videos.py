"""DTOs for video management endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.domain.models import VideoRecord, VideoStatus


class VideoResponse(BaseModel):
    """Public view of a video record."""

    id: str
    provider_video_id: str
    course_id: str
    lesson_id: str
    title: str
    description: str | None = None
    status: VideoStatus
    processing_progress: int
    duration: float | None = None
    thumbnail_url: str | None = None
    playback_hls_url: str | None = None
    playback_dash_url: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoResponse":
        return cls.model_validate(record.model_dump())


class CourseVideoListResponse(BaseModel):
    """Videos attached to a course."""

    course_id: str
    videos: list[VideoResponse]
    total: int


class CourseVideoStats(BaseModel):
    """Per-course counts by status."""

    course_id: str
    total: int = 0
    ready: int = 0
    processing: int = 0
    queued: int = 0
    error: int = 0
    total_duration: float = Field(default=0.0, description="Seconds, ready videos")


class DeleteVideoResponse(BaseModel):
    """Result of an administrative delete."""

    id: str
    deleted: bool
    provider_deleted: bool
    message: str


class SyncSummary(BaseModel):
    """Outcome of a bulk provider sync."""

    checked: int
    synced: int
    failed: int


class UpdateVideoRequest(BaseModel):
    """Admin edit of a video's descriptive fields.

    Omitted fields keep their value; an empty description clears it.
    """

    title: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=5000)
