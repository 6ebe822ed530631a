"""
Schools24 Backend — Compressed Key-Value Cache
================================================

What:  JSON + snappy cache in front of hot, rarely-changing reads.
Why:   The subject and class lists are read on nearly every dashboard load
       and change only when an admin creates one.
How:   CacheService encodes values (json → snappy) and delegates raw bytes
       to a pluggable backend chosen by CACHE_BACKEND:
           memory: in-process, per-entry expiry, byte budget, oldest-first eviction
           redis:  remote store at REDIS_ADDR, SETEX for expiry
Who:   AcademicService (subjects), ClassService (classes), health check (stats).

Data path:
    store(key, value) → json.dumps → snappy.compress → backend.set(key, bytes, ttl)
    fetch(key)        → backend.get(key) → snappy.decompress → json.loads

Hit/miss counters live in CacheService, so both backends report the same
stats shape to /health.
"""

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import snappy
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from app.config import Settings, settings
from app.exceptions import CacheError

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0


# ══════════════════════════════════════════════════════════════════════════
# Backends
# ══════════════════════════════════════════════════════════════════════════


class CacheBackend(ABC):
    """
    Raw byte store. Implementations never see Python objects, only the
    compressed payload CacheService hands them.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Returns None for missing or expired keys."""
        ...

    @abstractmethod
    async def set(self, key: str, data: bytes, ttl_seconds: int) -> None:
        ...

    @abstractmethod
    async def delete(self, *keys: str) -> None:
        """Missing keys are not an error."""
        ...

    @abstractmethod
    async def length(self) -> int:
        ...

    async def close(self) -> None:
        return None


class MemoryBackend(CacheBackend):
    """
    In-process store bounded by total payload bytes.

    Entries are kept in insertion order; when a write pushes the total over
    max_bytes, the oldest entries are evicted until it fits. A single entry
    larger than the whole budget is rejected with CacheError.

    Args:
        max_bytes: memory budget (CACHE_MAX_SIZE_MB × 1 MiB)
        clock:     returns seconds; tests inject a fake to expire entries
    """

    def __init__(self, max_bytes: int, clock: Callable[[], float] = time.monotonic):
        self.max_bytes = max_bytes
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, bytes]]" = OrderedDict()
        self._size = 0
        self._lock = threading.Lock()

    def _pop(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._size -= len(entry[1])

    async def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, data = entry
            if self._clock() >= expires_at:
                self._pop(key)
                return None
            return data

    async def set(self, key: str, data: bytes, ttl_seconds: int) -> None:
        if len(data) > self.max_bytes:
            raise CacheError(
                message="Cache entry exceeds the cache size limit",
                context={"key": key, "size": len(data)},
            )
        with self._lock:
            self._pop(key)
            while self._entries and self._size + len(data) > self.max_bytes:
                evicted, (_, old) = self._entries.popitem(last=False)
                self._size -= len(old)
                logger.debug("Cache evicted %s (%d bytes)", evicted, len(old))
            self._entries[key] = (self._clock() + ttl_seconds, data)
            self._size += len(data)

    async def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._pop(key)

    async def length(self) -> int:
        with self._lock:
            now = self._clock()
            for key in [k for k, (exp, _) in self._entries.items() if now >= exp]:
                self._pop(key)
            return len(self._entries)

    @property
    def size_bytes(self) -> int:
        return self._size


class RedisBackend(CacheBackend):
    """Remote store; expiry is delegated to Redis via SETEX."""

    def __init__(self, client: aioredis.Redis):
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings) -> "RedisBackend":
        host, _, port = config.redis_addr.partition(":")
        client = aioredis.Redis(
            host=host or "localhost",
            port=int(port or 6379),
            password=config.redis_password or None,
            db=config.redis_db,
            max_connections=config.redis_pool_size,
        )
        return cls(client)

    async def get(self, key: str) -> Optional[bytes]:
        try:
            return await self._client.get(key)
        except RedisError as e:
            raise CacheError(message="Cache read failed", context={"key": key, "error": str(e)})

    async def set(self, key: str, data: bytes, ttl_seconds: int) -> None:
        try:
            await self._client.setex(key, ttl_seconds, data)
        except RedisError as e:
            raise CacheError(message="Cache write failed", context={"key": key, "error": str(e)})

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._client.delete(*keys)
        except RedisError as e:
            raise CacheError(message="Cache delete failed", context={"error": str(e)})

    async def length(self) -> int:
        try:
            return int(await self._client.dbsize())
        except RedisError as e:
            raise CacheError(message="Cache size query failed", context={"error": str(e)})

    async def close(self) -> None:
        await self._client.aclose()


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════


class CacheService:
    """
    Typed front of a CacheBackend.

    store/fetch carry JSON-serialisable values, compressed with snappy.
    get_raw/set_raw carry strings uncompressed.
    """

    def __init__(self, backend: CacheBackend, default_ttl: Optional[int] = None):
        self.backend = backend
        self.default_ttl = default_ttl or settings.cache_ttl_seconds
        self._stats = CacheStats()

    def _record(self, hit: bool) -> None:
        if hit:
            self._stats.hits += 1
        else:
            self._stats.misses += 1

    async def store(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            payload = json.dumps(value, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise CacheError(message="Cache value is not JSON serialisable", context={"key": key, "error": str(e)})
        await self.backend.set(key, snappy.compress(payload), ttl or self.default_ttl)

    async def fetch(self, key: str) -> Optional[Any]:
        data = await self.backend.get(key)
        self._record(data is not None)
        if data is None:
            return None
        try:
            return json.loads(snappy.decompress(data))
        except (snappy.UncompressError, ValueError) as e:
            logger.warning("Dropping undecodable cache entry %s: %s", key, str(e))
            await self.backend.delete(key)
            raise CacheError(message="Cached value could not be decoded", context={"key": key})

    async def get_raw(self, key: str) -> Optional[str]:
        data = await self.backend.get(key)
        self._record(data is not None)
        return data.decode("utf-8") if data is not None else None

    async def set_raw(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        await self.backend.set(key, value.encode("utf-8"), ttl or self.default_ttl)

    async def delete(self, *keys: str) -> None:
        await self.backend.delete(*keys)

    async def len(self) -> int:
        return await self.backend.length()

    def stats(self) -> CacheStats:
        return CacheStats(hits=self._stats.hits, misses=self._stats.misses)

    async def close(self) -> None:
        await self.backend.close()


def create_cache(config: Settings = settings) -> CacheService:
    """Builds the cache selected by CACHE_BACKEND (called from the lifespan)."""
    if config.cache_backend == "redis":
        backend: CacheBackend = RedisBackend.from_settings(config)
        logger.info("Cache backend: redis at %s (db=%d)", config.redis_addr, config.redis_db)
    else:
        backend = MemoryBackend(max_bytes=config.cache_max_size_mb * 1024 * 1024)
        logger.info("Cache backend: memory (%d MB budget)", config.cache_max_size_mb)
    return CacheService(backend, default_ttl=config.cache_ttl_seconds)
