"""SocialStore abstract interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from contextrail.social.models import Interaction, Relationship, SocialEntity


class SocialStore(ABC):
    """Abstract interface for relationship storage.

    Entities are looked up by lowercase name.
    """

    @abstractmethod
    async def save_entity(self, entity: SocialEntity) -> str:
        """Save an entity, returning its name."""
        pass

    @abstractmethod
    async def get_entity(self, name: str) -> SocialEntity | None:
        """Get an entity by name."""
        pass

    @abstractmethod
    async def add_relationship(self, relationship: Relationship) -> None:
        """Record a relationship with an existing entity."""
        pass

    @abstractmethod
    async def add_interaction(self, interaction: Interaction) -> None:
        """Record an interaction with an existing entity."""
        pass

    @abstractmethod
    async def get_relationships(self, names: Sequence[str]) -> list[Relationship]:
        """Relationships of the named entities, in name order."""
        pass

    @abstractmethod
    async def get_recent_interactions(
        self,
        names: Sequence[str],
        *,
        limit: int = 5,
    ) -> list[Interaction]:
        """Most recent interactions with the named entities, newest first."""
        pass
