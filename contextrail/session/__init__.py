"""Session domain.

Sessions are resolved once per run through an explicit SessionStore and
the resolved id is carried on the Context.
"""

from contextrail.session.models import SessionHandle, new_session_id
from contextrail.session.store import SessionStore
from contextrail.session.stores import InMemorySessionStore

__all__ = [
    "SessionHandle",
    "SessionStore",
    "InMemorySessionStore",
    "new_session_id",
]
