"""Infrastructure layer - external service implementations."""

from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from src.infrastructure.notifications import StatusNotifierBase, WebhookStatusNotifier
from src.infrastructure.streaming import (
    CloudflareStreamClient,
    ProviderAsset,
    StreamingProviderBase,
    UploadTicket,
    UploadTicketOptions,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Streaming
    "StreamingProviderBase",
    "UploadTicketOptions",
    "UploadTicket",
    "ProviderAsset",
    "CloudflareStreamClient",
    # Notifications
    "StatusNotifierBase",
    "WebhookStatusNotifier",
]
