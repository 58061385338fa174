"""Data Transfer Objects for application layer."""

from src.application.dtos.uploads import CreateUploadRequest, UploadTicketResponse
from src.application.dtos.videos import (
    CourseVideoListResponse,
    CourseVideoStats,
    DeleteVideoResponse,
    SyncSummary,
    UpdateVideoRequest,
    VideoResponse,
)
from src.application.dtos.webhooks import (
    ProviderWebhookPayload,
    WebhookOutcome,
    WebhookPlayback,
    WebhookResponse,
    WebhookStatusBlock,
)

__all__ = [
    # Upload DTOs
    "CreateUploadRequest",
    "UploadTicketResponse",
    # Webhook DTOs
    "ProviderWebhookPayload",
    "WebhookStatusBlock",
    "WebhookPlayback",
    "WebhookOutcome",
    "WebhookResponse",
    # Video DTOs
    "VideoResponse",
    "CourseVideoListResponse",
    "CourseVideoStats",
    "DeleteVideoResponse",
    "UpdateVideoRequest",
    "SyncSummary",
]
