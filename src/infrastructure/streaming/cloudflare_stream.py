"""Cloudflare Stream client."""

import time
from datetime import UTC, datetime
from typing import Any

import httpx

from src.commons.infrastructure.base import HealthStatus
from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import ProviderException
from src.domain.models import VideoStatus
from src.infrastructure.streaming.base import (
    ProviderAsset,
    StreamingProviderBase,
    UploadTicket,
    UploadTicketOptions,
)

logger = get_logger(__name__)


class CloudflareStreamClient(StreamingProviderBase):
    """Cloudflare Stream implementation of the streaming provider.

    Every API response is wrapped in an envelope::

        {"success": true, "errors": [], "messages": [], "result": {...}}

    Transport errors, timeouts, non-2xx responses and ``success: false`` all
    surface as :class:`ProviderException`.
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Cloudflare Stream client.

        Args:
            account_id: Cloudflare account identifier.
            api_token: API token with Stream edit permission.
            base_url: API root.
            timeout: Per-request timeout in seconds.
            transport: Optional transport override, used in tests.
        """
        self._account_id = account_id
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def _stream_path(self) -> str:
        return f"/accounts/{self._account_id}/stream"

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderException(operation, "request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderException(operation, str(e) or type(e).__name__) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_error or not data.get("success", False):
            errors = data.get("errors") or []
            reason = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise ProviderException(
                operation,
                reason or f"HTTP {response.status_code}",
                status_code=response.status_code,
                details={"errors": errors},
            )
        return data.get("result")

    @timed
    async def issue_upload_ticket(self, options: UploadTicketOptions) -> UploadTicket:
        """Create a direct upload URL for a new asset."""
        body = {
            "maxDurationSeconds": options.max_duration_seconds,
            "expiry": _format_expiry(options.expires_at),
            "meta": options.meta,
            "requireSignedURLs": options.require_signed_urls,
        }
        result = await self._request(
            "issue_upload_ticket",
            "POST",
            f"{self._stream_path}/direct_upload",
            json=body,
        )
        if not isinstance(result, dict) or not (
            result.get("uploadURL") and result.get("uid")
        ):
            raise ProviderException(
                "issue_upload_ticket", "response is missing uploadURL or uid"
            )
        return UploadTicket(
            upload_url=result["uploadURL"],
            provider_video_id=result["uid"],
        )

    @timed
    async def get_asset_status(self, provider_video_id: str) -> ProviderAsset:
        """Fetch one asset's details."""
        result = await self._request(
            "get_asset_status",
            "GET",
            f"{self._stream_path}/{provider_video_id}",
        )
        if not isinstance(result, dict):
            raise ProviderException("get_asset_status", "response has no result")
        return _asset_from_result(result)

    @timed
    async def delete_asset(self, provider_video_id: str) -> bool:
        """Delete an asset. A 404 means it is already gone."""
        try:
            await self._request(
                "delete_asset",
                "DELETE",
                f"{self._stream_path}/{provider_video_id}",
            )
        except ProviderException as e:
            if e.status_code == 404:
                logger.info(
                    "Provider asset already absent",
                    extra={"provider_video_id": provider_video_id},
                )
                return False
            raise
        return True

    @timed
    async def list_assets(
        self,
        status: VideoStatus | None = None,
        limit: int = 1000,
    ) -> list[ProviderAsset]:
        """List assets, newest first."""
        params: dict[str, Any] = {"limit": limit}
        if status is not None:
            params["status"] = status.value
        result = await self._request(
            "list_assets", "GET", self._stream_path, params=params
        )
        return [
            _asset_from_result(item) for item in result or [] if isinstance(item, dict)
        ]

    async def health_check(self) -> HealthStatus:
        """Check that the API accepts our credentials."""
        start = time.perf_counter()
        try:
            await self._request(
                "health_check", "GET", self._stream_path, params={"limit": 1}
            )
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="Cloudflare Stream is reachable",
            )
        except ProviderException as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"Cloudflare Stream health check failed: {e.reason}",
                details={"error": e.reason},
            )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def _format_expiry(expires_at: datetime) -> str:
    return expires_at.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _asset_from_result(result: dict[str, Any]) -> ProviderAsset:
    status = result.get("status") or {}
    playback = result.get("playback") or {}

    state: VideoStatus | None = None
    raw_state = status.get("state")
    if raw_state:
        try:
            state = VideoStatus.parse(str(raw_state))
        except ValueError:
            logger.warning(
                "Unknown provider state",
                extra={"provider_video_id": result.get("uid"), "state": raw_state},
            )

    return ProviderAsset(
        provider_video_id=str(result.get("uid", "")),
        state=state,
        progress=_parse_float(status.get("pctComplete")),
        duration=_parse_float(result.get("duration")),
        thumbnail_url=result.get("thumbnail") or None,
        playback_hls_url=playback.get("hls") or None,
        playback_dash_url=playback.get("dash") or None,
        error_code=status.get("errorReasonCode") or None,
        error_message=status.get("errorReasonText") or None,
        meta=result.get("meta"),
        created_at=_parse_datetime(result.get("created")),
    )
