"""
SessionStore protocol and implementations.

Abstracts session persistence so the orchestrator can work with either an
in-process dict or Redis. Every write carries a TTL; an expired session is
indistinguishable from one that never existed.
"""

import json
import logging
import time
from typing import Callable, Dict, List, Optional, Protocol, Set, Tuple, runtime_checkable

import redis.asyncio as redis

from .state import SessionState

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """Protocol for session persistence."""

    async def get(self, session_id: str) -> Optional[SessionState]:
        """Load a session, or None when missing or expired."""
        ...

    async def put(self, session_id: str, state: SessionState, ttl: int) -> None:
        """Store a session for ttl seconds."""
        ...

    async def delete(self, session_id: str) -> bool:
        """Remove a session. Returns True when it existed."""
        ...

    async def list_user_sessions(self, user_id: str) -> List[str]:
        """Session ids known for a user."""
        ...


class InMemorySessionStore:
    """Dict-backed store; expiry is checked on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._sessions: Dict[str, Tuple[dict, float]] = {}
        self._user_sessions: Dict[str, Set[str]] = {}

    async def get(self, session_id: str) -> Optional[SessionState]:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        data, expires_at = entry
        if self._clock() >= expires_at:
            self._evict(session_id, data.get("user_id"))
            return None
        return SessionState.from_dict(data)

    async def put(self, session_id: str, state: SessionState, ttl: int) -> None:
        self._sessions[session_id] = (state.to_dict(), self._clock() + ttl)
        self._user_sessions.setdefault(state.user_id, set()).add(session_id)

    async def delete(self, session_id: str) -> bool:
        entry = self._sessions.get(session_id)
        if entry is None:
            return False
        data, expires_at = entry
        self._evict(session_id, data.get("user_id"))
        return self._clock() < expires_at

    async def list_user_sessions(self, user_id: str) -> List[str]:
        live = []
        for session_id in sorted(self._user_sessions.get(user_id, set())):
            if await self.get(session_id) is not None:
                live.append(session_id)
        return live

    def _evict(self, session_id: str, user_id: Optional[str]):
        self._sessions.pop(session_id, None)
        if user_id and user_id in self._user_sessions:
            self._user_sessions[user_id].discard(session_id)
            if not self._user_sessions[user_id]:
                del self._user_sessions[user_id]


class RedisSessionStore:
    """
    Redis-backed store.

    Sessions are JSON strings written with SETEX under
    "{prefix}session:{id}"; "{prefix}user_sessions:{user}" is a set of the
    user's session ids, expired together with the newest session.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "dialogue:"):
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, redis_url: str, key_prefix: str = "dialogue:") -> "RedisSessionStore":
        return cls(redis.from_url(redis_url, decode_responses=True), key_prefix=key_prefix)

    def _session_key(self, session_id: str) -> str:
        return f"{self.key_prefix}session:{session_id}"

    def _user_key(self, user_id: str) -> str:
        return f"{self.key_prefix}user_sessions:{user_id}"

    async def get(self, session_id: str) -> Optional[SessionState]:
        raw = await self.client.get(self._session_key(session_id))
        if raw is None:
            return None
        return SessionState.from_dict(json.loads(raw))

    async def put(self, session_id: str, state: SessionState, ttl: int) -> None:
        await self.client.setex(self._session_key(session_id), ttl, json.dumps(state.to_dict()))
        user_key = self._user_key(state.user_id)
        await self.client.sadd(user_key, session_id)
        await self.client.expire(user_key, ttl)

    async def delete(self, session_id: str) -> bool:
        state = await self.get(session_id)
        removed = await self.client.delete(self._session_key(session_id))
        if state is not None:
            await self.client.srem(self._user_key(state.user_id), session_id)
        return bool(removed)

    async def list_user_sessions(self, user_id: str) -> List[str]:
        members = await self.client.smembers(self._user_key(user_id))
        live = []
        for session_id in sorted(members):
            if await self.client.exists(self._session_key(session_id)):
                live.append(session_id)
        return live

    async def close(self):
        await self.client.close()


def build_session_store(settings) -> SessionStore:
    """Session store for the configured backend."""
    if settings.is_redis:
        logger.info(f"Using Redis session store at {settings.redis_url}")
        return RedisSessionStore.from_url(settings.redis_url, key_prefix=settings.redis_key_prefix)
    logger.info("Using in-memory session store")
    return InMemorySessionStore()
