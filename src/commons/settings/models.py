"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "lesson-video-ingest"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/api"
    docs_enabled: bool = True


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    videos: str = "course_videos"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "lesson_videos"
    auth_source: str = "admin"
    timeout_ms: int = Field(default=5000, ge=100)
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class CacheSettings(BaseModel):
    """Advisory cache settings (Redis)."""

    enabled: bool = True
    url: str = "redis://localhost:6379/0"
    key_prefix: str = ""
    video_ttl_seconds: int = 3600
    course_list_ttl_seconds: int = 1800
    timeout_seconds: float = 1.0


class StreamingSettings(BaseModel):
    """Streaming provider settings (Cloudflare Stream)."""

    provider: Literal["cloudflare"] = "cloudflare"
    base_url: str = "https://api.cloudflare.com/client/v4"
    account_id: str = ""
    api_token: str = ""
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_duration_seconds: int = Field(default=21600, ge=1)  # 6 hours
    require_signed_urls: bool = False


class UploadSettings(BaseModel):
    """Upload intake validation settings."""

    allowed_extensions: list[str] = Field(
        default_factory=lambda: ["mp4", "webm", "mov", "avi", "mkv", "flv"]
    )
    max_file_size_bytes: int = Field(default=5 * 1024**3, ge=1)  # 5 GiB
    ticket_ttl_seconds: int = Field(default=1800, ge=60)  # 30 minutes


class WebhookSettings(BaseModel):
    """Inbound provider webhook settings."""

    secret: str | None = None
    signature_header: str = "X-Signature"
    signature_key: str = "v1"
    max_reconcile_attempts: int = Field(default=3, ge=1, le=10)


class NotificationSettings(BaseModel):
    """Outbound status-change notification settings."""

    webhook_url: str | None = None
    timeout_seconds: float = 5.0
    notify_states: list[Literal["queued", "inprogress", "ready", "error"]] = Field(
        default_factory=lambda: ["ready", "error"]
    )


class SecuritySettings(BaseModel):
    """Admin endpoint guard settings."""

    admin_api_token: str | None = None
    admin_identity_header: str = "X-Admin-Email"


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    streaming: StreamingSettings = Field(default_factory=StreamingSettings)
    uploads: UploadSettings = Field(default_factory=UploadSettings)
    webhooks: WebhookSettings = Field(default_factory=WebhookSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIDEO_INGEST__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
