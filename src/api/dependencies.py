"""FastAPI dependency injection for services and settings."""

import hmac
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from src.application.services.post_commit import (
    PostCommitPipeline,
    build_post_commit_pipeline,
)
from src.application.services.reconciler import StatusReconciler
from src.application.services.upload_intake import UploadIntakeService
from src.application.services.video_store import VideoRecordStore
from src.application.services.videos import VideoManagementService
from src.application.services.webhook_receiver import WebhookReceiverService
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.domain.exceptions import PersistenceException, UnauthorizedException
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

logger = get_logger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers.

    Args:
        settings: Application settings.

    Returns:
        Configured infrastructure factory.
    """
    return get_factory(settings)


# =============================================================================
# Admin guard
# =============================================================================


@dataclass(frozen=True)
class AdminPrincipal:
    """Caller allowed to use privileged endpoints."""

    identity: str


def require_admin(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> AdminPrincipal:
    """Check the admin bearer token.

    When no token is configured the request is let through and a warning
    is logged.

    Raises:
        UnauthorizedException: If the token is missing or wrong.
    """
    security = settings.security
    identity = request.headers.get(security.admin_identity_header) or "unknown"

    expected = security.admin_api_token
    if not expected:
        logger.warning(
            "Admin API token not configured, allowing unauthenticated admin call",
            extra={"path": request.url.path},
        )
        return AdminPrincipal(identity=identity)

    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedException("Missing admin bearer token")
    if not hmac.compare_digest(token.strip().encode(), expected.encode()):
        raise UnauthorizedException("Invalid admin token")

    return AdminPrincipal(identity=identity)


# =============================================================================
# Services
# =============================================================================


def get_video_store(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VideoRecordStore:
    return VideoRecordStore(
        document_db=factory.get_document_db(),
        cache=factory.get_cache(),
        doc_settings=settings.document_db,
        cache_settings=settings.cache,
    )


def get_post_commit_pipeline(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    store: Annotated[VideoRecordStore, Depends(get_video_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PostCommitPipeline:
    return build_post_commit_pipeline(
        store,
        notifier=factory.get_status_notifier(),
        notify_states=settings.notifications.notify_states,
    )


def get_reconciler(
    store: Annotated[VideoRecordStore, Depends(get_video_store)],
    post_commit: Annotated[PostCommitPipeline, Depends(get_post_commit_pipeline)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> StatusReconciler:
    return StatusReconciler(
        store=store,
        post_commit=post_commit,
        max_attempts=settings.webhooks.max_reconcile_attempts,
    )


def get_upload_intake_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    store: Annotated[VideoRecordStore, Depends(get_video_store)],
    post_commit: Annotated[PostCommitPipeline, Depends(get_post_commit_pipeline)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UploadIntakeService:
    """Get upload intake service with all dependencies.

    Returns:
        Configured upload intake service.
    """
    return UploadIntakeService(
        store=store,
        provider=factory.get_streaming_provider(),
        post_commit=post_commit,
        upload_settings=settings.uploads,
        streaming_settings=settings.streaming,
    )


def get_webhook_receiver(
    reconciler: Annotated[StatusReconciler, Depends(get_reconciler)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> WebhookReceiverService:
    return WebhookReceiverService(reconciler=reconciler, settings=settings.webhooks)


def get_video_management_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    store: Annotated[VideoRecordStore, Depends(get_video_store)],
    reconciler: Annotated[StatusReconciler, Depends(get_reconciler)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VideoManagementService:
    return VideoManagementService(
        store=store,
        provider=factory.get_streaming_provider(),
        reconciler=reconciler,
        upload_settings=settings.uploads,
    )


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
AdminDep = Annotated[AdminPrincipal, Depends(require_admin)]
UploadIntakeServiceDep = Annotated[
    UploadIntakeService, Depends(get_upload_intake_service)
]
WebhookReceiverDep = Annotated[WebhookReceiverService, Depends(get_webhook_receiver)]
VideoServiceDep = Annotated[
    VideoManagementService, Depends(get_video_management_service)
]


async def init_services(settings: Settings) -> None:
    """Initialize all infrastructure services on startup.

    Index creation failures are logged rather than raised so that the
    health endpoints can still report the broken dependency.

    Args:
        settings: Application settings.
    """
    factory = get_factory(settings)

    document_db = factory.get_document_db()
    cache = factory.get_cache()
    factory.get_streaming_provider()

    store = VideoRecordStore(
        document_db=document_db,
        cache=cache,
        doc_settings=settings.document_db,
        cache_settings=settings.cache,
    )
    try:
        await store.ensure_indexes()
    except PersistenceException as e:
        logger.error("Failed to ensure video indexes", extra={"error": e.reason})


async def shutdown_services() -> None:
    """Shutdown all infrastructure services."""
    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        reset_factory()
        get_settings.cache_clear()
