"""Application layer - use cases and orchestration.

This layer contains:
- Services: upload intake, webhook handling, reconciliation, management
- DTOs: Data transfer objects for API boundaries
"""

from src.application.dtos import (
    CreateUploadRequest,
    ProviderWebhookPayload,
    UploadTicketResponse,
    VideoResponse,
    WebhookOutcome,
)
from src.application.services import (
    PostCommitPipeline,
    StatusReconciler,
    UploadIntakeService,
    VideoManagementService,
    VideoRecordStore,
    WebhookReceiverService,
)

__all__ = [
    # DTOs
    "CreateUploadRequest",
    "UploadTicketResponse",
    "ProviderWebhookPayload",
    "WebhookOutcome",
    "VideoResponse",
    # Services
    "PostCommitPipeline",
    "StatusReconciler",
    "UploadIntakeService",
    "VideoManagementService",
    "VideoRecordStore",
    "WebhookReceiverService",
]
