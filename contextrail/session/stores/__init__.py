"""Session store implementations."""

from contextrail.session.stores.inmemory import InMemorySessionStore

__all__ = ["InMemorySessionStore"]
