"""Memory store implementations."""

from contextrail.memory.stores.inmemory import InMemoryMemoryStore

__all__ = ["InMemoryMemoryStore"]
