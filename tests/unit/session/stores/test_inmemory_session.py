"""Tests for InMemorySessionStore."""

import pytest

from contextrail.session.models import SessionHandle
from contextrail.session.stores import InMemorySessionStore


@pytest.fixture
def store() -> InMemorySessionStore:
    """Create a fresh store for each test."""
    return InMemorySessionStore()


class TestSessionOperations:
    """Tests for session CRUD operations."""

    @pytest.mark.asyncio
    async def test_save_and_get_session(self, store):
        """Should save and retrieve a session."""
        session = SessionHandle(user_id="alice")
        session_id = await store.save(session)
        retrieved = await store.get(session_id)

        assert retrieved is not None
        assert retrieved.session_id == session.session_id
        assert retrieved.user_id == "alice"

    @pytest.mark.asyncio
    async def test_get_nonexistent_session(self, store):
        assert await store.get("session-missing") is None

    @pytest.mark.asyncio
    async def test_delete_session(self, store):
        session_id = await store.save(SessionHandle())

        assert await store.delete(session_id) is True
        assert await store.get(session_id) is None
        assert await store.delete(session_id) is False

    @pytest.mark.asyncio
    async def test_get_returns_copy(self, store):
        """Mutating a returned handle does not change the stored one."""
        session_id = await store.save(SessionHandle())
        retrieved = await store.get(session_id)
        retrieved.turn_count = 99

        assert (await store.get(session_id)).turn_count == 0


class TestResolve:
    """Tests for per-run session resolution."""

    @pytest.mark.asyncio
    async def test_resolve_creates_session(self, store):
        session = await store.resolve(user_id="bob")

        assert session.session_id.startswith("session-")
        assert session.user_id == "bob"
        assert session.turn_count == 1
        assert await store.get(session.session_id) is not None

    @pytest.mark.asyncio
    async def test_resolve_unknown_id_uses_it(self, store):
        session = await store.resolve("session-chosen")

        assert session.session_id == "session-chosen"
        assert session.turn_count == 1

    @pytest.mark.asyncio
    async def test_resolve_existing_counts_turns(self, store):
        first = await store.resolve("session-a")
        second = await store.resolve("session-a")

        assert second.turn_count == 2
        assert second.started_at == first.started_at
        assert second.last_activity_at >= first.last_activity_at
        assert second.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_resolve_without_id_creates_each_time(self, store):
        first = await store.resolve()
        second = await store.resolve()

        assert first.session_id != second.session_id
