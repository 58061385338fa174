"""Settings management module."""

from src.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from src.commons.settings.models import (
    AppSettings,
    CacheSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    NotificationSettings,
    SecuritySettings,
    ServerSettings,
    Settings,
    StreamingSettings,
    TelemetrySettings,
    UploadSettings,
    WebhookSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    "CacheSettings",
    # Provider & flow
    "StreamingSettings",
    "UploadSettings",
    "WebhookSettings",
    "NotificationSettings",
    "SecuritySettings",
    # Telemetry
    "TelemetrySettings",
]
