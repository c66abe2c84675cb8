"""SessionStore abstract interface."""

from abc import ABC, abstractmethod

from contextrail.session.models import SessionHandle


class SessionStore(ABC):
    """Abstract interface for session storage."""

    @abstractmethod
    async def get(self, session_id: str) -> SessionHandle | None:
        """Get a session by ID."""
        pass

    @abstractmethod
    async def save(self, session: SessionHandle) -> str:
        """Save a session, returning its ID."""
        pass

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Delete a session."""
        pass

    @abstractmethod
    async def resolve(
        self,
        session_id: str | None = None,
        user_id: str = "system",
    ) -> SessionHandle:
        """Return the session for this run, creating it if needed.

        Each call counts as one turn of the session.
        """
        pass
