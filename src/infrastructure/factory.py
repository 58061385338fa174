"""Infrastructure factory for creating service instances from configuration."""

from typing import Any, cast
from urllib.parse import quote_plus

from src.commons.infrastructure.cache import CacheBase, NullCache, RedisCache
from src.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.notifications import StatusNotifierBase, WebhookStatusNotifier
from src.infrastructure.streaming import CloudflareStreamClient, StreamingProviderBase

logger = get_logger(__name__)


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    keeps one instance of each for the process lifetime.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{quote_plus(doc_settings.username)}"
                    f":{quote_plus(doc_settings.password)}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
                timeout_ms=doc_settings.timeout_ms,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_cache(self) -> CacheBase:
        """Get cache instance.

        Returns:
            Redis cache, or a no-op cache when caching is disabled.
        """
        if "cache" not in self._instances:
            cache_settings = self._settings.cache
            if cache_settings.enabled:
                self._instances["cache"] = RedisCache(
                    url=cache_settings.url,
                    key_prefix=cache_settings.key_prefix,
                    timeout_seconds=cache_settings.timeout_seconds,
                )
            else:
                self._instances["cache"] = NullCache()
        return cast("CacheBase", self._instances["cache"])

    def get_streaming_provider(self) -> StreamingProviderBase:
        """Get streaming provider instance.

        Returns:
            Configured streaming provider client.

        Raises:
            ValueError: If provider is not supported.
        """
        if "streaming" not in self._instances:
            stream_settings = self._settings.streaming
            if stream_settings.provider != "cloudflare":
                raise ValueError(
                    f"Unsupported streaming provider: {stream_settings.provider}"
                )
            self._instances["streaming"] = CloudflareStreamClient(
                account_id=stream_settings.account_id,
                api_token=stream_settings.api_token,
                base_url=stream_settings.base_url,
                timeout=stream_settings.timeout_seconds,
            )
        return cast("StreamingProviderBase", self._instances["streaming"])

    def get_status_notifier(self) -> StatusNotifierBase | None:
        """Get status-change notifier.

        Returns:
            Webhook notifier, or None when no webhook URL is configured.
        """
        url = self._settings.notifications.webhook_url
        if not url:
            return None
        if "notifier" not in self._instances:
            self._instances["notifier"] = WebhookStatusNotifier(
                url=url,
                timeout=self._settings.notifications.timeout_seconds,
            )
        return cast("StatusNotifierBase", self._instances["notifier"])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            try:
                await instance.close()
            except Exception as e:
                logger.warning(
                    "Failed to close infrastructure service",
                    extra={"service": name, "error": str(e)},
                )

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
