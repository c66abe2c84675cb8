"""Memory domain: stored memories recalled during enrichment."""

from contextrail.memory.models import Memory, MemoryImportance
from contextrail.memory.store import MemoryStore
from contextrail.memory.stores import InMemoryMemoryStore

__all__ = ["Memory", "MemoryImportance", "MemoryStore", "InMemoryMemoryStore"]
