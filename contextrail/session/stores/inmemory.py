"""In-memory implementation of SessionStore."""

from contextrail.pipeline.models import utc_now
from contextrail.session.models import SessionHandle
from contextrail.session.store import SessionStore


class InMemorySessionStore(SessionStore):
    """In-memory implementation of SessionStore for testing and development.

    Uses simple dict storage. Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._sessions: dict[str, SessionHandle] = {}

    async def get(self, session_id: str) -> SessionHandle | None:
        """Get a session by ID."""
        session = self._sessions.get(session_id)
        return session.model_copy() if session else None

    async def save(self, session: SessionHandle) -> str:
        """Save a session, returning its ID."""
        self._sessions[session.session_id] = session.model_copy()
        return session.session_id

    async def delete(self, session_id: str) -> bool:
        """Delete a session."""
        if session_id in self._sessions:
            del self._sessions[session_id]
            return True
        return False

    async def resolve(
        self,
        session_id: str | None = None,
        user_id: str = "system",
    ) -> SessionHandle:
        """Return the session for this run, creating it if needed."""
        session = self._sessions.get(session_id) if session_id else None
        if session is None:
            session = SessionHandle(user_id=user_id)
            if session_id:
                session.session_id = session_id

        session.turn_count += 1
        session.last_activity_at = utc_now()
        await self.save(session)
        return session.model_copy()
