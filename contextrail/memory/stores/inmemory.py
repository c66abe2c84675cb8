"""In-memory implementation of MemoryStore."""

from contextrail.memory.models import Memory
from contextrail.memory.store import MemoryStore


class InMemoryMemoryStore(MemoryStore):
    """In-memory implementation of MemoryStore for testing and development.

    Uses simple dict storage with linear scan for queries.
    Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._memories: dict[str, Memory] = {}

    async def add(self, memory: Memory) -> str:
        """Store a memory, returning its key."""
        self._memories[memory.key] = memory
        return memory.key

    async def get(self, key: str) -> Memory | None:
        """Get a memory by key."""
        return self._memories.get(key)

    async def delete(self, key: str) -> bool:
        """Delete a memory."""
        if key in self._memories:
            del self._memories[key]
            return True
        return False

    async def list_candidates(self, limit: int = 10) -> list[Memory]:
        """Return up to limit memories in insertion order."""
        return list(self._memories.values())[:limit]

    async def list_recent(self, limit: int = 20) -> list[Memory]:
        """Return the most recently stored memories, newest first."""
        results = sorted(self._memories.values(), key=lambda m: m.stored_at, reverse=True)
        return results[:limit]

    async def count(self) -> int:
        """Total number of stored memories."""
        return len(self._memories)
