"""
Tests for the cache manager, key utilities and TTL calculation.

The Valkey server is replaced by the FakeValkey store from conftest, or
dropped entirely to exercise the in-memory fallback.
"""

import pytest
from unittest.mock import patch

from valkey.exceptions import ConnectionError

from orm_workshop.cache import (
    CacheKeyBuilder,
    CacheKeyManager,
    CacheKeyPrefix,
    CacheManager,
    TTLCalculator,
    TTLPreset,
    ValkeyClient,
    ValkeyConfig,
    ValkeyConnectionError,
    key_manager,
)


class TestCacheKeys:
    """Test cache key building."""

    def test_entity_key(self):
        """Test entity keys are prefixed with the cache name."""
        assert key_manager.entity_key(CacheKeyPrefix.USERS, 42) == "exposed:users:42"
        assert key_manager.entity_key("exposed:user-credentials", "abc") == "exposed:user-credentials:abc"

    def test_entity_pattern(self):
        """Test SCAN patterns over a cache name."""
        assert key_manager.entity_pattern(CacheKeyPrefix.USERS) == "exposed:users:*"
        assert key_manager.entity_pattern(CacheKeyPrefix.USERS, "1*") == "exposed:users:1*"

    def test_country_key(self):
        """Test country keys follow the country cache name."""
        assert key_manager.country_key("KR") == "cache:code:country:country:KR"

    def test_write_behind_key_outside_entity_namespace(self):
        """Test the write-behind queue is not matched by the entity pattern."""
        queue_key = key_manager.write_behind_key(CacheKeyPrefix.USER_EVENTS)
        assert queue_key == "write-behind:exposed:user-events"
        assert not queue_key.startswith(key_manager.entity_pattern(CacheKeyPrefix.USER_EVENTS)[:-1])

    def test_build_key_with_params(self):
        """Test parameters are sorted into the key."""
        key = CacheKeyBuilder.build_key(CacheKeyPrefix.USERS, "search", limit=10, active=True)
        assert key == "exposed:users:search:active=True:limit=10"

    def test_validate_key(self):
        """Test keys with whitespace or over 250 chars are rejected."""
        manager = CacheKeyManager()
        assert manager.validate_key("exposed:users:1")
        assert not manager.validate_key("exposed users")
        assert not manager.validate_key("k" * 251)
        assert not manager.validate_key("")


class TestTTLCalculator:
    """Test TTL jitter."""

    def test_jitter_stays_in_range(self):
        """Test jittered TTLs stay within 10% of the base."""
        for _ in range(50):
            ttl = TTLCalculator.calculate_ttl_with_jitter(TTLPreset.DEFAULT)
            assert 3240 <= ttl <= 3960

    def test_small_ttl_is_not_raised_above_base(self):
        """Test a TTL below the minimum keeps its own value as the floor."""
        assert TTLCalculator.calculate_ttl_with_jitter(5, jitter_percent=0.0) == 5

    def test_presets(self):
        """Test the preset durations."""
        assert TTLPreset.COUNTRY == 86400
        assert TTLPreset.NEAR_CACHE == 60


class TestCacheManager:
    """Test cache manager operations against FakeValkey."""

    @pytest.mark.asyncio
    async def test_set_and_get_json(self, cache_manager, fake_valkey):
        """Test dicts are stored as JSON and read back."""
        assert await cache_manager.set("exposed:users:1", {"id": 1, "username": "neo"}, ttl=60)
        assert await cache_manager.get("exposed:users:1") == {"id": 1, "username": "neo"}
        assert "setex" in fake_valkey.commands

    @pytest.mark.asyncio
    async def test_set_rejects_invalid_key(self, cache_manager, fake_valkey):
        """Test keys with whitespace are never written."""
        assert await cache_manager.set("exposed users 1", {"id": 1}) is False
        assert fake_valkey.data == {}
        assert await cache_manager.get("exposed users 1") is None

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, cache_manager, fake_valkey):
        """Test a missing TTL stores the key without expiry."""
        await cache_manager.set("plain", "value", ttl=None)
        assert fake_valkey.commands[-1] == "set"
        assert await cache_manager.get_ttl("plain") is None

    @pytest.mark.asyncio
    async def test_get_default_on_miss(self, cache_manager):
        """Test a miss returns the default and is counted."""
        assert await cache_manager.get("missing", default="fallback") == "fallback"
        stats = await cache_manager.get_stats()
        assert stats["miss_count"] == 1

    @pytest.mark.asyncio
    async def test_get_many(self, cache_manager):
        """Test bulk reads return only the keys found."""
        await cache_manager.set("k:1", {"v": 1})
        await cache_manager.set("k:2", {"v": 2})

        found = await cache_manager.get_many(["k:1", "k:2", "k:3"])
        assert found == {"k:1": {"v": 1}, "k:2": {"v": 2}}

    @pytest.mark.asyncio
    async def test_delete_many_and_clear_pattern(self, cache_manager):
        """Test deleting keys one by one and by pattern."""
        for i in range(5):
            await cache_manager.set(f"exposed:users:{i}", {"id": i})
        await cache_manager.set("exposed:user-events:1", {"id": 1})

        assert await cache_manager.delete_many(["exposed:users:0", "exposed:users:1"]) == 2
        assert await cache_manager.clear_pattern("exposed:users:*") == 3
        assert await cache_manager.exists("exposed:user-events:1")

    @pytest.mark.asyncio
    async def test_queue_operations(self, cache_manager):
        """Test the write-behind queue is FIFO and popped in batches."""
        assert await cache_manager.push_queue("queue", {"id": 1}, {"id": 2}, {"id": 3}) == 3
        assert await cache_manager.queue_length("queue") == 3

        assert await cache_manager.pop_queue("queue", 2) == [{"id": 1}, {"id": 2}]
        assert await cache_manager.pop_queue("queue", 2) == [{"id": 3}]
        assert await cache_manager.pop_queue("queue", 2) == []

    @pytest.mark.asyncio
    async def test_health_check(self, cache_manager):
        """Test a working server reports healthy."""
        health = await cache_manager.health_check()
        assert health["status"] == "healthy"
        assert health["cache_available"] is True

    @pytest.mark.asyncio
    async def test_stats_include_connection_info(self, cache_manager):
        """Test stats carry the server info."""
        stats = await cache_manager.get_stats()
        assert stats["connection_info"]["server_version"] == "8.0.0"


class TestGracefulDegradation:
    """Test fallback behaviour when Valkey is missing or failing."""

    @pytest.mark.asyncio
    async def test_fallback_store(self, fallback_cache_manager):
        """Test the fallback store serves get, set and delete."""
        assert fallback_cache_manager.is_degraded
        await fallback_cache_manager.set("k", {"v": 1}, ttl=60)
        assert await fallback_cache_manager.get("k") == {"v": 1}
        assert await fallback_cache_manager.get_ttl("k") > 0
        assert await fallback_cache_manager.delete("k") is True
        assert await fallback_cache_manager.get("k") is None

    @pytest.mark.asyncio
    async def test_fallback_queue(self, fallback_cache_manager):
        """Test the fallback queue keeps write-behind working without Valkey."""
        await fallback_cache_manager.push_queue("queue", 1, 2, 3)
        assert await fallback_cache_manager.pop_queue("queue", 10) == [1, 2, 3]
        assert await fallback_cache_manager.queue_length("queue") == 0

    @pytest.mark.asyncio
    async def test_fallback_eviction(self):
        """Test the fallback store evicts its oldest key when full."""
        manager = CacheManager(client=None, fallback_max_size=2)
        for key in ("a", "b", "c"):
            await manager.set(key, key)
        assert await manager.get("a") is None
        assert await manager.get("c") == "c"

    @pytest.mark.asyncio
    async def test_fallback_health(self, fallback_cache_manager):
        """Test health reports degraded without a client."""
        health = await fallback_cache_manager.health_check()
        assert health["status"] == "degraded"
        assert health["fallback_active"] is True

    @pytest.mark.asyncio
    async def test_circuit_breaker_opens(self, valkey_client, fake_valkey):
        """Test repeated failures open the circuit and use the fallback."""
        manager = CacheManager(client=valkey_client, circuit_breaker_threshold=3)

        with patch.object(fake_valkey, "setex", side_effect=ConnectionError("down")):
            for i in range(3):
                assert await manager.set(f"k:{i}", "v", ttl=60) is True

        assert manager.is_circuit_open
        assert manager.is_degraded
        assert await manager.get("k:0") == "v"

        stats = await manager.get_stats()
        assert stats["connection_errors"] == 3
        assert stats["fallback_operations"] == 3

    @pytest.mark.asyncio
    async def test_initialize_falls_back_when_unreachable(self):
        """Test an unreachable server leaves the manager in fallback mode."""
        manager = CacheManager(client=None)
        with patch("orm_workshop.cache.manager.ValkeyClient.ensure_connection",
                   side_effect=ValkeyConnectionError("no server")):
            await manager.initialize()

        assert manager.client is None
        assert await manager.set("k", 1)
        assert await manager.get("k") == 1


class TestValkeyClient:
    """Test connecting with retries."""

    @pytest.mark.asyncio
    async def test_connect_retries_until_ping_succeeds(self, fake_valkey, unreachable_valkey):
        """Test a failed ping is retried with backoff."""
        client = ValkeyClient(ValkeyConfig(), reconnect_delay=0.01)

        with patch("orm_workshop.cache.client.valkey.Valkey", side_effect=[unreachable_valkey, fake_valkey]):
            await client.connect()

        assert client.is_connected
        assert client.client is fake_valkey

        await client.disconnect()
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_connect_gives_up(self, unreachable_valkey):
        """Test connect raises after the last attempt."""
        client = ValkeyClient(ValkeyConfig(), max_connection_attempts=2, reconnect_delay=0.01)

        with patch("orm_workshop.cache.client.valkey.Valkey", return_value=unreachable_valkey):
            with pytest.raises(ValkeyConnectionError, match="after 2 attempts"):
                await client.connect()

        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_async_context_manager(self, fake_valkey):
        """Test the client connects on enter and disconnects on exit."""
        with patch("orm_workshop.cache.client.valkey.Valkey", return_value=fake_valkey):
            async with ValkeyClient(ValkeyConfig()) as client:
                assert client.is_connected
                assert (await client.get_connection_info())["server_version"] == "8.0.0"

        assert not client.is_connected
