"""MemoryStore abstract interface."""

from abc import ABC, abstractmethod

from contextrail.memory.models import Memory


class MemoryStore(ABC):
    """Abstract interface for memory storage."""

    @abstractmethod
    async def add(self, memory: Memory) -> str:
        """Store a memory, returning its key."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Memory | None:
        """Get a memory by key."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a memory."""
        pass

    @abstractmethod
    async def list_candidates(self, limit: int = 10) -> list[Memory]:
        """Return up to limit memories to score for relevance."""
        pass

    @abstractmethod
    async def list_recent(self, limit: int = 20) -> list[Memory]:
        """Return the most recently stored memories, newest first."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Total number of stored memories."""
        pass
