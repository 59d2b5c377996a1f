"""
Context Store - session-scoped persistence for ConversationContext.

The store is an injected interface; the orchestrator never knows which
backend it is talking to. Contexts are stored as JSON under

    {prefix}{session_id}:{team_id}      e.g. intake:ctx:abc123:acme-law

with both ids escaped so distinct pairs can never share a key. Every save
refreshes the TTL; nothing is ever deleted explicitly.

load() never raises: a missing, corrupt or unreachable entry yields a fresh
default context. save() is best effort and reports failure as False.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Optional

from routers.intake_orchestration.context import ConversationContext
from .redis_client import FallbackCache, RedisManager

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "intake:ctx:"
DEFAULT_TTL = 3600


def escape_key_part(value: str) -> str:
    """Percent-escape the separator (and the escape char itself)."""
    return str(value).replace("%", "%25").replace(":", "%3A")


def make_key(session_id: str, team_id: str, prefix: str = DEFAULT_PREFIX) -> str:
    return f"{prefix}{escape_key_part(session_id)}:{escape_key_part(team_id)}"


class ContextStore(ABC):
    """Persistence contract for conversation contexts."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL, prefix: str = DEFAULT_PREFIX):
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _make_key(self, session_id: str, team_id: str) -> str:
        return make_key(session_id, team_id, self.prefix)

    @abstractmethod
    async def _read(self, key: str) -> Optional[str]:
        """Raw stored value, or None when absent."""

    @abstractmethod
    async def _write(self, key: str, value: str, ttl: int) -> bool:
        """Store value and (re)set its TTL."""

    async def load(self, session_id: str, team_id: str) -> ConversationContext:
        key = self._make_key(session_id, team_id)

        try:
            raw = await self._read(key)
        except Exception as e:
            logger.error(f"Context load failed for session {session_id}: {type(e).__name__}: {e}")
            return ConversationContext.default(session_id, team_id)

        if raw is None:
            logger.debug(f"No stored context for session {session_id}, starting fresh")
            return ConversationContext.default(session_id, team_id)

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise TypeError(f"expected object, got {type(data).__name__}")
            context = ConversationContext.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Corrupt context for session {session_id}, using defaults: {type(e).__name__}: {e}")
            return ConversationContext.default(session_id, team_id)

        # Ids come from the key, not the payload
        context.session_id = session_id
        context.team_id = team_id
        return context

    async def save(self, context: ConversationContext) -> bool:
        key = self._make_key(context.session_id, context.team_id)
        context.last_updated = datetime.now(timezone.utc).isoformat()

        try:
            payload = json.dumps(context.to_dict())
            ok = await self._write(key, payload, self.ttl_seconds)
        except Exception as e:
            logger.error(f"Context save failed for session {context.session_id}: {type(e).__name__}: {e}")
            return False

        if ok:
            logger.debug(f"Context saved: session={context.session_id} ttl={self.ttl_seconds}s")
        else:
            logger.warning(f"Context save reported failure for session {context.session_id}")
        return ok


class RedisContextStore(ContextStore):
    """Redis-backed store; RedisManager handles its own in-memory fallback."""

    def __init__(self, redis: Optional[RedisManager] = None, ttl_seconds: int = DEFAULT_TTL, prefix: str = DEFAULT_PREFIX):
        super().__init__(ttl_seconds, prefix)
        self._redis = redis

    async def _get_redis(self) -> RedisManager:
        if self._redis is None:
            from .redis_client import get_redis
            self._redis = await get_redis()
        return self._redis

    async def _read(self, key: str) -> Optional[str]:
        redis = await self._get_redis()
        return await redis.get(key)

    async def _write(self, key: str, value: str, ttl: int) -> bool:
        redis = await self._get_redis()
        return await redis.set(key, value, ttl=ttl)


class InMemoryContextStore(ContextStore):
    """Process-local store for tests and single-instance deployments."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL, prefix: str = DEFAULT_PREFIX, max_entries: int = 10000):
        super().__init__(ttl_seconds, prefix)
        self._cache = FallbackCache(max_entries)

    async def _read(self, key: str) -> Optional[str]:
        return self._cache.get(key)

    async def _write(self, key: str, value: str, ttl: int) -> bool:
        self._cache.set(key, value, ttl)
        return True

    def put_raw(self, session_id: str, team_id: str, raw: str) -> None:
        """Store an arbitrary payload under a session key."""
        self._cache.set(self._make_key(session_id, team_id), raw, self.ttl_seconds)

    def __len__(self) -> int:
        return len(self._cache)


class SessionLocks:
    """
    Per-session asyncio locks giving single-flight turns.

    Entries are created on demand and dropped as soon as no task holds or
    waits on them, so the registry does not grow with session count.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, session_id: str, team_id: str) -> AsyncIterator[None]:
        key = make_key(session_id, team_id, prefix="")
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] <= 0:
                self._users.pop(key, None)
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


# Singleton instance
_context_store: Optional[ContextStore] = None


def get_context_store() -> ContextStore:
    """Get the configured context store singleton."""
    global _context_store

    if _context_store is None:
        from config import runtime_config

        if runtime_config.context_backend == "memory":
            _context_store = InMemoryContextStore(
                ttl_seconds=runtime_config.context_ttl,
                prefix=runtime_config.context_key_prefix,
            )
        else:
            _context_store = RedisContextStore(
                ttl_seconds=runtime_config.context_ttl,
                prefix=runtime_config.context_key_prefix,
            )
        logger.info(f"Context store: {type(_context_store).__name__} ttl={runtime_config.context_ttl}s")

    return _context_store
