"""Social store implementations."""

from contextrail.social.stores.inmemory import InMemorySocialStore

__all__ = ["InMemorySocialStore"]
