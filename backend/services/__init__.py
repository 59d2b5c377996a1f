"""
Intake Services - Shared infrastructure services.

- redis_client: Redis connection manager with health checks and fallback
- context_store: Conversation context persistence and per-session locks
- llm_client: AI collaborator on an OpenAI-compatible endpoint
- collaborators: Matter submission, notifications, artifacts, document extraction
"""

from .redis_client import RedisManager, get_redis, close_redis
from .context_store import ContextStore, RedisContextStore, InMemoryContextStore, SessionLocks, get_context_store

__all__ = [
    "RedisManager",
    "get_redis",
    "close_redis",
    "ContextStore",
    "RedisContextStore",
    "InMemoryContextStore",
    "SessionLocks",
    "get_context_store",
]
