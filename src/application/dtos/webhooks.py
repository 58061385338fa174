"""DTOs for inbound provider webhooks."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.models import StatusReport, VideoStatus


class WebhookOutcome(str, Enum):
    """What a webhook delivery did to the stored record."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"  # Terminal record, report ignored
    IGNORED = "ignored"  # No record for this provider id


class WebhookStatusBlock(BaseModel):
    """The ``status`` object of a provider payload."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    state: VideoStatus | None = None
    pct_complete: float | None = Field(default=None, alias="pctComplete")
    error_reason_code: str | None = Field(default=None, alias="errorReasonCode")
    error_reason_text: str | None = Field(default=None, alias="errorReasonText")

    @field_validator("state", mode="before")
    @classmethod
    def provider_state(cls, v: Any) -> Any:
        if isinstance(v, str):
            return VideoStatus.parse(v) if v.strip() else None
        return v

    @field_validator("pct_complete", mode="before")
    @classmethod
    def blank_progress_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class WebhookPlayback(BaseModel):
    """Playback manifest URLs."""

    model_config = ConfigDict(extra="ignore")

    hls: str | None = None
    dash: str | None = None


class ProviderWebhookPayload(BaseModel):
    """Asset notification sent by the streaming provider.

    Unknown fields are ignored. A missing ``status`` block means the
    provider reported no state change.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    uid: str = Field(min_length=1, description="Provider asset UID")
    status: WebhookStatusBlock | None = None
    duration: float | None = None
    thumbnail: str | None = None
    playback: WebhookPlayback | None = None
    meta: dict[str, Any] | None = None
    ready_to_stream: bool | None = Field(default=None, alias="readyToStream")

    @field_validator("uid")
    @classmethod
    def uid_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("uid cannot be blank")
        return v

    def to_status_report(self) -> StatusReport:
        """Convert to a domain report.

        A ``ready`` state only counts once the provider also says the asset
        is ready to stream. Until then it is reported as ``inprogress``.
        """
        status = self.status or WebhookStatusBlock()
        playback = self.playback or WebhookPlayback()
        state = status.state
        if state == VideoStatus.READY and self.ready_to_stream is False:
            state = VideoStatus.IN_PROGRESS
        return StatusReport(
            provider_video_id=self.uid,
            state=state,
            progress=status.pct_complete,
            duration=self.duration,
            thumbnail_url=self.thumbnail or None,
            playback_hls_url=playback.hls or None,
            playback_dash_url=playback.dash or None,
            error_code=status.error_reason_code or None,
            error_message=status.error_reason_text or None,
            meta=self.meta,
        )


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the provider."""

    status: WebhookOutcome
