"""
Redis Connection Manager - backing store for conversation contexts.

Provides:
- Async connection over redis.asyncio
- Health checks used by the app lifespan
- Graceful fallback to an in-process TTL/LRU cache when Redis is down

Usage:
    from services.redis_client import get_redis

    redis = await get_redis()
    await redis.set("intake:ctx:abc:team-1", payload, ttl=3600)
"""

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import redis.asyncio as redis_async

logger = logging.getLogger(__name__)


class FallbackCache:
    """In-process stand-in for Redis: string values, per-key TTL, LRU bound."""

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._values: "OrderedDict[str, str]" = OrderedDict()
        self._expiry: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._values)

    def _expired(self, key: str) -> bool:
        deadline = self._expiry.get(key)
        return deadline is not None and time.time() > deadline

    def _drop(self, key: str) -> None:
        self._values.pop(key, None)
        self._expiry.pop(key, None)

    def sweep(self) -> int:
        """Remove expired entries. Returns how many were dropped."""
        now = time.time()
        stale = [k for k, deadline in self._expiry.items() if now > deadline]
        for key in stale:
            self._drop(key)
        return len(stale)

    def get(self, key: str) -> Optional[str]:
        if self._expired(key):
            self._drop(key)
            return None
        value = self._values.get(key)
        if value is not None:
            self._values.move_to_end(key)
        return value

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if key not in self._values and len(self._values) >= self.max_entries:
            self.sweep()
            while len(self._values) >= self.max_entries:
                evicted, _ = self._values.popitem(last=False)
                self._expiry.pop(evicted, None)

        self._values[key] = value
        self._values.move_to_end(key)
        if ttl:
            self._expiry[key] = time.time() + ttl
        else:
            self._expiry.pop(key, None)


@dataclass
class RedisManager:
    """
    Redis connection manager with fallback support.

    Every operation degrades to the FallbackCache once Redis errors, so
    callers never see a connection exception from here.
    """

    url: str = "redis://localhost:6379/0"
    enabled: bool = True
    fallback_max_entries: int = 1000

    _client: Any = field(default=None, repr=False)
    _fallback_mode: bool = field(default=False, repr=False)
    _fallback: Optional[FallbackCache] = field(default=None, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self):
        self._fallback = FallbackCache(self.fallback_max_entries)

    @property
    def available(self) -> bool:
        return self._client is not None and not self._fallback_mode

    async def connect(self) -> bool:
        """Connect and ping. Returns False (fallback mode) on any failure."""
        if not self.enabled:
            logger.info("Redis disabled by config, using in-memory fallback")
            self._fallback_mode = True
            return False

        async with self._lock:
            if self.available:
                return True
            try:
                self._client = redis_async.from_url(
                    self.url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=5.0,
                    socket_timeout=5.0,
                )
                await self._client.ping()
                self._fallback_mode = False
                logger.info(f"Redis connected: {self.url}")
                return True
            except Exception as e:
                logger.warning(f"Redis connection failed: {e}, using in-memory fallback")
                self._fallback_mode = True
                return False

    async def disconnect(self) -> None:
        async with self._lock:
            if self._client is None:
                return
            try:
                await self._client.aclose()
            except Exception as e:
                logger.warning(f"Error closing Redis: {e}")
            finally:
                self._client = None

    async def health_check(self) -> Dict[str, Any]:
        """Status, mode and latency for the startup log and /health."""
        if self._fallback_mode:
            return {"status": "fallback", "mode": "in-memory", "cache_size": len(self._fallback)}
        if self._client is None:
            return {"status": "disconnected", "mode": "none"}

        try:
            start = time.perf_counter()
            await self._client.ping()
            return {
                "status": "connected",
                "mode": "redis",
                "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            }
        except Exception as e:
            self._enter_fallback(e)
            return {"status": "error", "mode": "fallback", "error": str(e)}

    # === Key-Value Operations ===

    async def get(self, key: str) -> Optional[str]:
        if self._fallback_mode:
            return self._fallback.get(key)
        try:
            return await self._client.get(key)
        except Exception as e:
            self._enter_fallback(e)
            return self._fallback.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """Set a value with optional TTL in seconds."""
        if self._fallback_mode:
            self._fallback.set(key, value, ttl)
            return True
        try:
            if ttl:
                await self._client.setex(key, ttl, value)
            else:
                await self._client.set(key, value)
            return True
        except Exception as e:
            self._enter_fallback(e)
            self._fallback.set(key, value, ttl)
            return True

    # === Internal ===

    def _enter_fallback(self, error: Exception) -> None:
        if not self._fallback_mode:
            logger.warning(f"Redis unavailable ({type(error).__name__}: {error}), switching to in-memory fallback")
            self._fallback_mode = True


# Singleton instance
_redis_manager: Optional[RedisManager] = None


async def get_redis() -> RedisManager:
    """Get the Redis manager singleton, connecting on first call."""
    global _redis_manager

    if _redis_manager is None:
        from config import runtime_config

        manager = RedisManager(url=runtime_config.redis_url, enabled=runtime_config.redis_enabled)
        await manager.connect()
        _redis_manager = manager

    return _redis_manager


async def close_redis() -> None:
    """Close the Redis connection (call on shutdown)."""
    global _redis_manager
    if _redis_manager:
        await _redis_manager.disconnect()
        _redis_manager = None
