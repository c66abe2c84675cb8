"""Session domain models."""

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from contextrail.pipeline.models import utc_now


def new_session_id() -> str:
    """Generate a fresh session identifier."""
    return f"session-{uuid4().hex}"


class SessionHandle(BaseModel):
    """Resolved session for one run.

    A handle is resolved once per run through SessionStore.resolve and its
    id is threaded through the Context; stages never look up a "current"
    session on their own.
    """

    session_id: str = Field(default_factory=new_session_id, description="Session identifier")
    user_id: str = Field(default="system", description="Owner of the session")
    started_at: datetime = Field(default_factory=utc_now, description="Session start")
    last_activity_at: datetime = Field(default_factory=utc_now, description="Last resolve")
    turn_count: int = Field(default=0, ge=0, description="Runs resolved against this session")

    @property
    def duration_ms(self) -> float:
        return (self.last_activity_at - self.started_at).total_seconds() * 1000
