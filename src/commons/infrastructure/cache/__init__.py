"""Advisory cache abstractions and implementations."""

from src.commons.infrastructure.cache.base import CacheBase, NullCache
from src.commons.infrastructure.cache.keys import CacheKeys
from src.commons.infrastructure.cache.redis_provider import RedisCache

__all__ = [
    # Base classes
    "CacheBase",
    "CacheKeys",
    # Implementations
    "NullCache",
    "RedisCache",
]
