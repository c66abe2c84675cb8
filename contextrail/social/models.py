"""Social domain models."""

from datetime import datetime

from pydantic import BaseModel, Field

from contextrail.pipeline.models import CommunicationStyle, utc_now


class SocialEntity(BaseModel):
    """A person or agent the system has a relationship with."""

    name: str = Field(..., description="Lowercase name used for lookup")
    entity_type: str = Field(default="person")
    display_name: str | None = None


class Relationship(BaseModel):
    """A relationship with a social entity."""

    entity_name: str
    relationship_type: str = Field(..., description="e.g. friend, colleague")
    strength: float = Field(default=0.5, ge=0.0, le=1.0)
    notes: str | None = None
    preferred_style: CommunicationStyle | None = Field(
        default=None,
        description="Communication style explicitly preferred in this relationship",
    )


class Interaction(BaseModel):
    """A recorded interaction with a social entity."""

    entity_name: str
    summary: str = "Social interaction"
    interaction_type: str = "conversation"
    emotional_tone: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
