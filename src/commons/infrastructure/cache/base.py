"""Abstract base class for the advisory key-value cache."""

from abc import ABC, abstractmethod
from typing import Any

from src.commons.infrastructure.base import HealthStatus


class CacheBase(ABC):
    """Abstract base class for cache operations.

    The cache is advisory: implementations never raise on backend failures.
    A broken cache behaves like an empty one, and the document store stays
    the source of truth.
    """

    @abstractmethod
    async def get_json(self, key: str) -> Any | None:
        """Return the decoded value for key, or None on a miss."""

    @abstractmethod
    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a JSON-serializable value with an expiry.

        Args:
            key: Cache key.
            value: Value to encode as JSON.
            ttl_seconds: Time to live.
        """

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Remove keys.

        Returns:
            Number of keys removed.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check backend health."""

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""


class NullCache(CacheBase):
    """Cache that stores nothing. Used when caching is disabled."""

    async def get_json(self, key: str) -> Any | None:
        return None

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        return None

    async def delete(self, *keys: str) -> int:
        return 0

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.0, message="Cache disabled")

    async def close(self) -> None:
        return None
