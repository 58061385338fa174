"""Application services for lesson video ingestion and management."""

from src.application.services.post_commit import (
    PostCommitPipeline,
    PostCommitStep,
    build_post_commit_pipeline,
    invalidate_cache_step,
    notify_status_change_step,
)
from src.application.services.reconciler import ReconcileResult, StatusReconciler
from src.application.services.upload_intake import UploadIntakeService
from src.application.services.video_store import VideoRecordStore
from src.application.services.videos import VideoManagementService
from src.application.services.webhook_receiver import (
    WebhookReceiverService,
    compute_signature,
    parse_signature_header,
)

__all__ = [
    "PostCommitPipeline",
    "PostCommitStep",
    "ReconcileResult",
    "StatusReconciler",
    "UploadIntakeService",
    "VideoManagementService",
    "VideoRecordStore",
    "WebhookReceiverService",
    "build_post_commit_pipeline",
    "compute_signature",
    "invalidate_cache_step",
    "notify_status_change_step",
    "parse_signature_header",
]
