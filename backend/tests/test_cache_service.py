"""
Schools24 Backend — Cache Service Tests
=========================================

What:  snappy+JSON round trip, stats, expiry and the memory backend's byte
       budget; RedisBackend error mapping against a mocked client.
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.exceptions import CacheError
from app.services.cache_service import CacheService, MemoryBackend, RedisBackend


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestCacheService:

    def setup_method(self):
        self.clock = FakeClock()
        self.backend = MemoryBackend(max_bytes=1024 * 1024, clock=self.clock)
        self.cache = CacheService(self.backend, default_ttl=60)

    @pytest.mark.asyncio
    async def test_store_then_fetch(self):
        value = {"subjects": [{"code": "MATH", "credits": 1}], "count": 1}
        await self.cache.store("subjects:all", value)
        assert await self.cache.fetch("subjects:all") == value

    @pytest.mark.asyncio
    async def test_stored_payload_is_compressed_bytes(self):
        await self.cache.store("k", {"text": "a" * 500})
        raw = await self.backend.get("k")
        assert isinstance(raw, bytes)
        assert len(raw) < 500

    @pytest.mark.asyncio
    async def test_miss_returns_none_and_counts(self):
        assert await self.cache.fetch("missing") is None
        await self.cache.store("k", 1)
        await self.cache.fetch("k")

        stats = self.cache.stats()
        assert stats.hits == 1
        assert stats.misses == 1

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self):
        await self.cache.store("k", "v", ttl=10)
        self.clock.now = 9.9
        assert await self.cache.fetch("k") == "v"
        self.clock.now = 10.0
        assert await self.cache.fetch("k") is None

    @pytest.mark.asyncio
    async def test_raw_strings(self):
        await self.cache.set_raw("greeting", "namaste")
        assert await self.cache.get_raw("greeting") == "namaste"
        assert await self.cache.get_raw("other") is None

    @pytest.mark.asyncio
    async def test_delete_and_len(self):
        await self.cache.store("a", 1)
        await self.cache.store("b", 2)
        assert await self.cache.len() == 2

        await self.cache.delete("a", "missing")
        assert await self.cache.len() == 1
        assert await self.cache.fetch("a") is None

    @pytest.mark.asyncio
    async def test_undecodable_entry_dropped(self):
        await self.backend.set("bad", b"\x00not-snappy", 60)
        with pytest.raises(CacheError):
            await self.cache.fetch("bad")
        assert await self.backend.get("bad") is None

    @pytest.mark.asyncio
    async def test_non_json_value_rejected(self):
        with pytest.raises(CacheError):
            await self.cache.store("k", {"when": object()})


class TestMemoryBackendBudget:

    @pytest.mark.asyncio
    async def test_oldest_entries_evicted_first(self):
        backend = MemoryBackend(max_bytes=10)
        await backend.set("a", b"1234", 60)
        await backend.set("b", b"5678", 60)
        await backend.set("c", b"90ab", 60)

        assert await backend.get("a") is None
        assert await backend.get("b") == b"5678"
        assert await backend.get("c") == b"90ab"
        assert backend.size_bytes == 8

    @pytest.mark.asyncio
    async def test_overwrite_replaces_size(self):
        backend = MemoryBackend(max_bytes=10)
        await backend.set("a", b"1234", 60)
        await backend.set("a", b"12", 60)
        assert backend.size_bytes == 2

    @pytest.mark.asyncio
    async def test_entry_larger_than_budget_rejected(self):
        backend = MemoryBackend(max_bytes=4)
        with pytest.raises(CacheError):
            await backend.set("big", b"12345", 60)


class TestRedisBackend:

    @pytest.mark.asyncio
    async def test_set_uses_setex(self):
        client = AsyncMock()
        backend = RedisBackend(client)
        await backend.set("k", b"v", 30)
        client.setex.assert_awaited_once_with("k", 30, b"v")

    @pytest.mark.asyncio
    async def test_redis_error_mapped_to_cache_error(self):
        client = AsyncMock()
        client.get.side_effect = RedisConnectionError("refused")
        backend = RedisBackend(client)
        with pytest.raises(CacheError, match="Cache read failed"):
            await backend.get("k")

    @pytest.mark.asyncio
    async def test_length_uses_dbsize(self):
        client = AsyncMock()
        client.dbsize.return_value = 7
        assert await RedisBackend(client).length() == 7
