"""In-memory implementation of SocialStore."""

from collections.abc import Sequence

from contextrail.social.models import Interaction, Relationship, SocialEntity
from contextrail.social.store import SocialStore


class InMemorySocialStore(SocialStore):
    """In-memory implementation of SocialStore for testing and development.

    Uses simple dict storage with linear scan for queries.
    Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._entities: dict[str, SocialEntity] = {}
        self._relationships: list[Relationship] = []
        self._interactions: list[Interaction] = []

    async def save_entity(self, entity: SocialEntity) -> str:
        """Save an entity, returning its name."""
        entity.name = entity.name.lower()
        self._entities[entity.name] = entity
        return entity.name

    async def get_entity(self, name: str) -> SocialEntity | None:
        """Get an entity by name."""
        return self._entities.get(name.lower())

    async def add_relationship(self, relationship: Relationship) -> None:
        """Record a relationship with an existing entity."""
        self._require(relationship.entity_name)
        relationship.entity_name = relationship.entity_name.lower()
        self._relationships.append(relationship)

    async def add_interaction(self, interaction: Interaction) -> None:
        """Record an interaction with an existing entity."""
        self._require(interaction.entity_name)
        interaction.entity_name = interaction.entity_name.lower()
        self._interactions.append(interaction)

    async def get_relationships(self, names: Sequence[str]) -> list[Relationship]:
        """Relationships of the named entities, in name order."""
        results = []
        for name in names:
            results.extend(r for r in self._relationships if r.entity_name == name.lower())
        return results

    async def get_recent_interactions(
        self,
        names: Sequence[str],
        *,
        limit: int = 5,
    ) -> list[Interaction]:
        """Most recent interactions with the named entities, newest first."""
        wanted = {name.lower() for name in names}
        results = [i for i in self._interactions if i.entity_name in wanted]
        results.sort(key=lambda x: x.created_at, reverse=True)
        return results[:limit]

    def _require(self, name: str) -> None:
        if name.lower() not in self._entities:
            raise KeyError(f"Unknown social entity: {name}")
