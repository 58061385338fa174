"""Abstract base class for video streaming providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.commons.infrastructure.base import HealthStatus
from src.domain.models import StatusReport, VideoStatus


@dataclass
class UploadTicketOptions:
    """Parameters for a direct resumable upload ticket."""

    max_duration_seconds: int
    expires_at: datetime
    meta: dict[str, str] = field(default_factory=dict)
    require_signed_urls: bool = False


@dataclass
class UploadTicket:
    """A single-use, time-boxed upload URL issued by the provider."""

    upload_url: str
    provider_video_id: str


@dataclass
class ProviderAsset:
    """Provider-side view of a hosted video asset."""

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
    created_at: datetime | None = None

    def to_status_report(self) -> StatusReport:
        """Express the pulled asset as a status report for reconciliation."""
        return StatusReport(
            provider_video_id=self.provider_video_id,
            state=self.state,
            progress=self.progress,
            duration=self.duration,
            thumbnail_url=self.thumbnail_url,
            playback_hls_url=self.playback_hls_url,
            playback_dash_url=self.playback_dash_url,
            error_code=self.error_code,
            error_message=self.error_message,
            meta=self.meta,
        )


class StreamingProviderBase(ABC):
    """Abstract base class for video streaming providers.

    Implementations should handle:
    - Cloudflare Stream
    - Mux
    """

    @abstractmethod
    async def issue_upload_ticket(self, options: UploadTicketOptions) -> UploadTicket:
        """Request a direct resumable upload URL.

        Args:
            options: Ticket limits and metadata embedded in the asset.

        Returns:
            Upload URL with the provider's asset identifier.

        Raises:
            ProviderException: If the provider is unreachable or refuses.
        """

    @abstractmethod
    async def get_asset_status(self, provider_video_id: str) -> ProviderAsset:
        """Fetch the current processing state of an asset.

        Raises:
            ProviderException: If the provider is unreachable or refuses.
        """

    @abstractmethod
    async def delete_asset(self, provider_video_id: str) -> bool:
        """Delete an asset.

        Returns:
            True if deleted, False if the provider did not know it.

        Raises:
            ProviderException: If the provider is unreachable or refuses.
        """

    @abstractmethod
    async def list_assets(
        self,
        status: VideoStatus | None = None,
        limit: int = 1000,
    ) -> list[ProviderAsset]:
        """List hosted assets, optionally filtered by state."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check provider reachability."""

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""
