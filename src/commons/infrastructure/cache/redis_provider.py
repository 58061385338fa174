"""Redis implementation of the advisory cache."""

import json
import time
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.commons.infrastructure.base import HealthStatus
from src.commons.infrastructure.cache.base import CacheBase
from src.commons.telemetry import get_logger

logger = get_logger(__name__)

_CACHE_ERRORS = (RedisError, OSError)


class RedisCache(CacheBase):
    """Redis-backed cache using ``redis.asyncio``.

    Every backend error is logged as a warning and turned into a miss or a
    no-op, so callers never see cache failures.
    """

    def __init__(
        self,
        url: str,
        key_prefix: str = "",
        timeout_seconds: float = 1.0,
    ) -> None:
        """Initialize Redis client.

        Args:
            url: Redis connection URL.
            key_prefix: Prefix prepended to every key.
            timeout_seconds: Socket connect and read timeout.
        """
        self._client: Redis = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get_json(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(self._key(key))
        except _CACHE_ERRORS as e:
            logger.warning("Cache get failed", extra={"key": key, "error": str(e)})
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry", extra={"key": key})
            return None

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self._client.set(
                self._key(key),
                json.dumps(value, default=str),
                ex=ttl_seconds,
            )
        except _CACHE_ERRORS as e:
            logger.warning("Cache set failed", extra={"key": key, "error": str(e)})

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            removed = await self._client.delete(*(self._key(k) for k in keys))
        except _CACHE_ERRORS as e:
            logger.warning(
                "Cache delete failed", extra={"keys": list(keys), "error": str(e)}
            )
            return 0
        return int(removed)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.ping()
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="Redis is healthy",
            )
        except _CACHE_ERRORS as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"Redis health check failed: {e}",
                details={"error": str(e)},
            )

    async def close(self) -> None:
        """Close the connection pool."""
        await self._client.aclose()
