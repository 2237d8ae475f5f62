"""Tests for session state serialization and session stores."""

import asyncio
import json

from config.settings import Settings
from dialogue.session_store import InMemorySessionStore, RedisSessionStore, SessionStore, build_session_store
from dialogue.state import SessionState
from intents.scorer import IntentMatch


class FakeClock:
    def __init__(self):
        self.value = 1000.0

    def __call__(self):
        return self.value


class FakeRedis:
    """Minimal async stand-in for redis.asyncio.Redis."""

    def __init__(self):
        self.values = {}
        self.sets = {}
        self.ttls = {}

    async def get(self, key):
        return self.values.get(key)

    async def setex(self, key, ttl, value):
        self.values[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        return 1 if self.values.pop(key, None) is not None else 0

    async def sadd(self, key, member):
        self.sets.setdefault(key, set()).add(member)

    async def srem(self, key, member):
        self.sets.get(key, set()).discard(member)

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def expire(self, key, ttl):
        self.ttls[key] = ttl

    async def exists(self, key):
        return 1 if key in self.values else 0


# ── SessionState ──────────────────────────────────────

class TestSessionState:
    def test_new_session_starts_in_general(self, session, now):
        assert session.current_topic == "general"
        assert session.topic_hint == "general"
        assert session.created_at == now
        assert session.topic_history[0].trigger == "session_start"

    def test_round_trip_through_json(self, engine, corpus, session, now):
        match = IntentMatch(intent_id="account_inquiry", confidence=0.95, topic="banking",
                            extracted_parameters={"accountId": "ACC123456"})
        state, _ = engine.advance(session, match, corpus, "ACC123456", now)
        state.add_message("user", "ACC123456", now)

        restored = SessionState.from_dict(json.loads(json.dumps(state.to_dict())))
        assert restored == state

    def test_message_cap(self, session, now):
        for i in range(7):
            session.add_message("user", f"m{i}", now, limit=5)
        assert [m.content for m in session.messages] == ["m2", "m3", "m4", "m5", "m6"]


# ── In-memory store ───────────────────────────────────

class TestInMemorySessionStore:
    def test_put_get_delete(self, session):
        store = InMemorySessionStore()

        async def scenario():
            await store.put(session.session_id, session, ttl=60)
            loaded = await store.get(session.session_id)
            assert loaded == session
            assert await store.list_user_sessions("user-1") == ["session-1"]
            assert await store.delete(session.session_id)
            assert await store.get(session.session_id) is None
            assert not await store.delete(session.session_id)

        asyncio.run(scenario())

    def test_expiry_on_read(self, session):
        clock = FakeClock()
        store = InMemorySessionStore(clock=clock)

        async def scenario():
            await store.put(session.session_id, session, ttl=10)
            clock.value += 9
            assert await store.get(session.session_id) is not None
            clock.value += 2
            assert await store.get(session.session_id) is None
            assert await store.list_user_sessions("user-1") == []

        asyncio.run(scenario())

    def test_delete_expired_reports_missing(self, session):
        clock = FakeClock()
        store = InMemorySessionStore(clock=clock)

        async def scenario():
            await store.put(session.session_id, session, ttl=10)
            clock.value += 10
            assert not await store.delete(session.session_id)
            assert await store.list_user_sessions("user-1") == []

        asyncio.run(scenario())

    def test_stored_copy_is_detached(self, session):
        store = InMemorySessionStore()

        async def scenario():
            await store.put(session.session_id, session, ttl=60)
            session.current_topic = "billing"
            assert (await store.get(session.session_id)).current_topic == "general"

        asyncio.run(scenario())

    def test_satisfies_protocol(self):
        assert isinstance(InMemorySessionStore(), SessionStore)


# ── Redis store ───────────────────────────────────────

class TestRedisSessionStore:
    def test_setex_and_user_index(self, session):
        client = FakeRedis()
        store = RedisSessionStore(client, key_prefix="test:")

        async def scenario():
            await store.put(session.session_id, session, ttl=3600)
            assert client.ttls["test:session:session-1"] == 3600
            assert client.sets["test:user_sessions:user-1"] == {"session-1"}
            assert await store.get("session-1") == session
            assert await store.list_user_sessions("user-1") == ["session-1"]

        asyncio.run(scenario())

    def test_delete(self, session):
        client = FakeRedis()
        store = RedisSessionStore(client)

        async def scenario():
            await store.put(session.session_id, session, ttl=60)
            assert await store.delete("session-1")
            assert await store.get("session-1") is None
            assert await store.list_user_sessions("user-1") == []
            assert not await store.delete("session-1")

        asyncio.run(scenario())

    def test_missing_session(self):
        store = RedisSessionStore(FakeRedis())
        assert asyncio.run(store.get("nope")) is None


class TestBuildSessionStore:
    def test_memory_backend(self):
        assert isinstance(build_session_store(Settings(session_backend="memory")), InMemorySessionStore)

    def test_redis_backend(self):
        store = build_session_store(Settings(session_backend="redis", redis_url="redis://localhost:6379/1"))
        assert isinstance(store, RedisSessionStore)
