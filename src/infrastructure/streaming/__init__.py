"""Video streaming provider abstractions and implementations."""

from src.infrastructure.streaming.base import (
    ProviderAsset,
    StreamingProviderBase,
    UploadTicket,
    UploadTicketOptions,
)
from src.infrastructure.streaming.cloudflare_stream import CloudflareStreamClient

__all__ = [
    # Base classes
    "StreamingProviderBase",
    "UploadTicketOptions",
    "UploadTicket",
    "ProviderAsset",
    # Implementations
    "CloudflareStreamClient",
]
