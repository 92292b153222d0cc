"""Unit tests for the profile cache backends."""

from unittest.mock import MagicMock, patch

import pytest
import redis

from accounts.services.profile_cache import (
    CacheError,
    MemoryProfileCache,
    ProfileCacheConfig,
    RedisProfileCache,
    check_cache_connection,
    create_profile_cache,
)


class TestMemoryProfileCache:
    """Tests for MemoryProfileCache."""

    def test_get_returns_set_value(self, memory_cache: MemoryProfileCache) -> None:
        """Test that a stored value is returned until deleted."""
        memory_cache.set("alice", b'{"vanity":"alice"}')

        assert memory_cache.get("alice") == b'{"vanity":"alice"}'

    def test_get_missing_key_returns_none(self, memory_cache: MemoryProfileCache) -> None:
        """Test that absence is reported as None."""
        assert memory_cache.get("nobody") is None

    def test_delete_removes_value(self, memory_cache: MemoryProfileCache) -> None:
        """Test that get returns None after delete."""
        memory_cache.set("alice", b"snapshot")
        memory_cache.delete("alice")

        assert memory_cache.get("alice") is None

    def test_delete_missing_key_is_noop(self, memory_cache: MemoryProfileCache) -> None:
        """Test that deleting an absent key does not raise."""
        memory_cache.delete("nobody")

    def test_entry_expires_after_ttl(self, memory_cache: MemoryProfileCache) -> None:
        """Test that entries disappear once the default 300s TTL elapses."""
        with patch("accounts.services.profile_cache.time") as mock_time:
            mock_time.time.return_value = 1000.0
            memory_cache.set("alice", b"snapshot")

            mock_time.time.return_value = 1299.0
            assert memory_cache.get("alice") == b"snapshot"

            mock_time.time.return_value = 1301.0
            assert memory_cache.get("alice") is None

    def test_explicit_ttl_overrides_default(self, memory_cache: MemoryProfileCache) -> None:
        """Test that a per-call TTL is honoured."""
        with patch("accounts.services.profile_cache.time") as mock_time:
            mock_time.time.return_value = 1000.0
            memory_cache.set("alice", b"snapshot", ttl=10)

            mock_time.time.return_value = 1011.0
            assert memory_cache.get("alice") is None

    def test_evicts_when_full(self) -> None:
        """Test that the cache never grows past max_size."""
        cache = MemoryProfileCache(ProfileCacheConfig(max_size=10))
        for i in range(25):
            cache.set(f"user{i}", b"snapshot")

        assert cache.get_stats()["total_entries"] <= 10
        assert cache.get("user24") == b"snapshot"

    def test_cleanup_removes_expired(self, memory_cache: MemoryProfileCache) -> None:
        """Test that cleanup reports the number of expired entries removed."""
        with patch("accounts.services.profile_cache.time") as mock_time:
            mock_time.time.return_value = 1000.0
            memory_cache.set("alice", b"a", ttl=5)
            memory_cache.set("bob", b"b", ttl=500)

            mock_time.time.return_value = 1010.0
            assert memory_cache.cleanup() == 1
            assert memory_cache.get("bob") == b"b"


class TestRedisProfileCache:
    """Tests for RedisProfileCache with a mocked client."""

    @pytest.fixture
    def mock_redis(self) -> MagicMock:
        return MagicMock(spec=redis.Redis)

    @pytest.fixture
    def cache(self, mock_redis: MagicMock) -> RedisProfileCache:
        return RedisProfileCache(mock_redis)

    def test_get_uses_prefixed_key(self, cache: RedisProfileCache, mock_redis: MagicMock) -> None:
        """Test that keys are namespaced."""
        mock_redis.get.return_value = b"snapshot"

        assert cache.get("alice") == b"snapshot"
        mock_redis.get.assert_called_once_with("accounts:profile:alice")

    def test_set_passes_ttl(self, cache: RedisProfileCache, mock_redis: MagicMock) -> None:
        """Test that the default TTL is 300 seconds."""
        cache.set("alice", b"snapshot")

        mock_redis.set.assert_called_once_with("accounts:profile:alice", b"snapshot", ex=300)

    def test_delete(self, cache: RedisProfileCache, mock_redis: MagicMock) -> None:
        """Test that delete removes the prefixed key."""
        cache.delete("alice")

        mock_redis.delete.assert_called_once_with("accounts:profile:alice")

    @pytest.mark.parametrize("method,args", [("get", ("alice",)), ("set", ("alice", b"x")), ("delete", ("alice",))])
    def test_backend_errors_raise_cache_error(
        self, cache: RedisProfileCache, mock_redis: MagicMock, method: str, args: tuple
    ) -> None:
        """Test that redis failures surface as CacheError."""
        getattr(mock_redis, method).side_effect = redis.ConnectionError("connection refused")

        with pytest.raises(CacheError):
            getattr(cache, method)(*args)

    @pytest.mark.asyncio
    async def test_check_connection_reports_failure(
        self, cache: RedisProfileCache, mock_redis: MagicMock
    ) -> None:
        """Test that readiness reports an unreachable cache."""
        mock_redis.ping.side_effect = redis.ConnectionError("connection refused")

        result = await check_cache_connection(cache)

        assert result["healthy"] is False
        assert "connection refused" in result["error"]


class TestCreateProfileCache:
    """Tests for the cache factory."""

    def test_memory_backend(self, test_settings) -> None:
        """Test that the memory backend is built from settings."""
        settings = test_settings.model_copy(update={"cache_backend": "memory", "cache_ttl_seconds": 60})

        cache = create_profile_cache(settings)

        assert isinstance(cache, MemoryProfileCache)
        assert cache.config.ttl_seconds == 60

    def test_redis_backend(self, test_settings) -> None:
        """Test that the redis backend is built from the configured URL."""
        settings = test_settings.model_copy(update={"cache_backend": "redis"})

        with patch("accounts.services.profile_cache.redis.Redis.from_url") as mock_from_url:
            cache = create_profile_cache(settings)

        assert isinstance(cache, RedisProfileCache)
        mock_from_url.assert_called_once_with(settings.redis_url)
