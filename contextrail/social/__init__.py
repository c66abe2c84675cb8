"""Social domain: entities, relationships and interactions."""

from contextrail.social.models import Interaction, Relationship, SocialEntity
from contextrail.social.store import SocialStore
from contextrail.social.stores import InMemorySocialStore

__all__ = [
    "Interaction",
    "Relationship",
    "SocialEntity",
    "SocialStore",
    "InMemorySocialStore",
]
