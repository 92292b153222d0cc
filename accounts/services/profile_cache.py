"""TTL key-value cache for serialized profile snapshots."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import TYPE_CHECKING, Any

import redis

if TYPE_CHECKING:
    from accounts.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class CacheError(Exception):
    """The cache backend failed to serve a request."""


@dataclass
class CacheEntry:
    """A cached snapshot with expiration."""

    value: bytes
    expires_at: float

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return time.time() > self.expires_at


@dataclass
class ProfileCacheConfig:
    """Configuration for profile caching."""

    ttl_seconds: int = DEFAULT_TTL_SECONDS
    max_size: int = 10000  # In-memory backend only
    key_prefix: str = "accounts:profile:"

    @classmethod
    def from_settings(cls, settings: Settings) -> ProfileCacheConfig:
        """Create config from application settings."""
        return cls(
            ttl_seconds=settings.cache_ttl_seconds,
            max_size=settings.cache_max_size,
        )


class ProfileCache(ABC):
    """Best-effort snapshot cache.

    Absence of an entry is always valid. Backends raise CacheError on
    failure and callers decide whether to fail open.
    """

    def __init__(self, config: ProfileCacheConfig | None = None) -> None:
        self.config = config or ProfileCacheConfig()

    def _key(self, key: str) -> str:
        return f"{self.config.key_prefix}{key}"

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the cached value or None on miss/expiry."""

    @abstractmethod
    def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        """Store a value for ttl seconds (config default when None)."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a value; deleting a missing key is not an error."""

    @abstractmethod
    def ping(self) -> bool:
        """Check backend connectivity."""

    def close(self) -> None:
        """Release backend resources."""


class MemoryProfileCache(ProfileCache):
    """Thread-safe in-process cache with TTL, for development and tests."""

    def __init__(self, config: ProfileCacheConfig | None = None) -> None:
        super().__init__(config)
        self._cache: dict[str, CacheEntry] = {}
        self._lock = Lock()

    def get(self, key: str) -> bytes | None:
        cache_key = self._key(key)

        with self._lock:
            entry = self._cache.get(cache_key)
            if entry is None:
                logger.debug("Cache miss for key %s", cache_key)
                return None

            if entry.is_expired():
                logger.debug("Cache expired for key %s", cache_key)
                del self._cache[cache_key]
                return None

            logger.debug("Cache hit for key %s", cache_key)
            return entry.value

    def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        cache_key = self._key(key)
        ttl = self.config.ttl_seconds if ttl is None else ttl
        expires_at = time.time() + ttl

        with self._lock:
            if cache_key not in self._cache and len(self._cache) >= self.config.max_size:
                self._evict_oldest()

            self._cache[cache_key] = CacheEntry(value=value, expires_at=expires_at)
            logger.debug("Cached snapshot for key %s (expires in %ds)", cache_key, ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(self._key(key), None)

    def ping(self) -> bool:
        return True

    def _evict_oldest(self) -> None:
        """Evict oldest entries to make room. Must be called with lock held."""
        expired_keys = [k for k, v in self._cache.items() if v.is_expired()]
        for key in expired_keys:
            del self._cache[key]

        # If still at capacity, remove oldest 10%
        if len(self._cache) >= self.config.max_size:
            sorted_entries = sorted(self._cache.items(), key=lambda x: x[1].expires_at)
            to_remove = max(1, len(self._cache) // 10)
            for key, _ in sorted_entries[:to_remove]:
                del self._cache[key]
            logger.debug("Evicted %d entries from profile cache", to_remove)

    def cleanup(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            expired_keys = [k for k, v in self._cache.items() if v.is_expired()]
            for key in expired_keys:
                del self._cache[key]
            return len(expired_keys)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics for monitoring."""
        with self._lock:
            valid_count = sum(1 for v in self._cache.values() if not v.is_expired())
            return {
                "total_entries": len(self._cache),
                "valid_entries": valid_count,
                "expired_entries": len(self._cache) - valid_count,
                "max_size": self.config.max_size,
                "ttl_seconds": self.config.ttl_seconds,
            }


class RedisProfileCache(ProfileCache):
    """Redis-backed cache shared by every service instance."""

    def __init__(self, client: redis.Redis, config: ProfileCacheConfig | None = None) -> None:
        super().__init__(config)
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str, config: ProfileCacheConfig | None = None) -> RedisProfileCache:
        return cls(redis.Redis.from_url(redis_url), config)

    def get(self, key: str) -> bytes | None:
        try:
            value = self._client.get(self._key(key))
        except redis.RedisError as e:
            raise CacheError(f"Cache get failed: {e}") from e
        logger.debug("Cache %s for key %s", "hit" if value is not None else "miss", key)
        return value

    def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        ttl = self.config.ttl_seconds if ttl is None else ttl
        try:
            self._client.set(self._key(key), value, ex=ttl)
        except redis.RedisError as e:
            raise CacheError(f"Cache set failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except redis.RedisError as e:
            raise CacheError(f"Cache delete failed: {e}") from e

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            raise CacheError(f"Cache ping failed: {e}") from e

    def close(self) -> None:
        self._client.close()


def create_profile_cache(settings: Settings) -> ProfileCache:
    """Instantiate the configured cache backend.

    Raises:
        ValueError: If the backend is unknown.
    """
    config = ProfileCacheConfig.from_settings(settings)

    if settings.cache_backend == "memory":
        return MemoryProfileCache(config)

    if settings.cache_backend == "redis":
        return RedisProfileCache.from_url(settings.redis_url, config)

    raise ValueError(f"Unsupported cache backend: {settings.cache_backend!r}")


async def check_cache_connection(cache: ProfileCache) -> dict[str, Any]:
    """Check if the cache backend is reachable.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        return {"healthy": cache.ping()}
    except CacheError as e:
        return {"healthy": False, "error": str(e)}
