"""DTOs for upload intake."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CreateUploadRequest(BaseModel):
    """Request for a resumable upload ticket.

    Field contents are checked by the intake service so that every rule
    fails with the same error shape.
    """

    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(description="Original filename, used for type checks")
    file_size: int = Field(alias="fileSize", description="Size in bytes")
    course_id: str = Field(alias="courseId", description="Owning course")
    lesson_id: str = Field(alias="lessonId", description="Lesson within the course")
    title: str = Field(description="Video title")
    description: str | None = Field(default=None, description="Optional description")


class UploadTicketResponse(BaseModel):
    """Ticket handed to the client for the direct upload."""

    model_config = ConfigDict(populate_by_name=True)

    tus_url: str = Field(alias="tusUrl", description="Provider upload URL")
    video_id: str = Field(alias="videoId", description="Provider asset UID")
    db_video_id: str = Field(alias="dbVideoId", description="Internal record ID")
    expires_at: datetime = Field(alias="expiresAt", description="Ticket expiry (UTC)")
