"""Sub-analysis results produced by enrichment stages.

Every result carries a confidence in [0, 1]. When a stage fails or times
out in the concurrent engine, the engine stores the stage's fallback
result instead, with confidence forced to FALLBACK_CONFIDENCE and
is_fallback set, so downstream synthesis always finds one entry per stage.
"""

from datetime import datetime

from pydantic import Field

from contextrail.pipeline.models.base import FrozenModel, utc_now
from contextrail.pipeline.models.enums import CommunicationStyle

FALLBACK_CONFIDENCE = 0.1


class SubAnalysis(FrozenModel):
    """Base for all named sub-analysis results."""

    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence score")
    is_fallback: bool = Field(default=False, description="Substituted after a failure")

    @classmethod
    def fallback(cls) -> "SubAnalysis":
        """Zero-value result used when the producing stage fails.

        All fields take their defaults; only confidence and the fallback
        marker are set.
        """
        return cls(confidence=FALLBACK_CONFIDENCE, is_fallback=True)


class MessageAnalysis(SubAnalysis):
    """Intent and emotional reading of the incoming message."""

    intent: str = Field(default="general", description="Primary intent label")
    operations: list[str] = Field(default_factory=list, description="Suggested operations")
    entities_mentioned: list[str] = Field(default_factory=list, description="Known entities")
    emotional_context: str = Field(default="neutral", description="Detected emotion")
    requires_memory: bool = False
    requires_social: bool = False
    requires_insight_storage: bool = False
    reasoning: list[str] = Field(default_factory=list)


class SessionAnalysis(SubAnalysis):
    """Current conversational state of the session."""

    session_id: str = ""
    turn_count: int = Field(default=0, ge=0)
    mode: str = "analytical"
    awareness_level: str = "medium"
    emotional_tone: str = "neutral"
    cognitive_load: float = Field(default=0.1, ge=0.0, le=1.0)
    attention_focus: str = "general_conversation"
    learning_state: str = "active"
    duration_ms: float = Field(default=0.0, ge=0.0)
    contextual_factors: list[str] = Field(default_factory=list)


class MemorySnippet(FrozenModel):
    """A recalled memory with its relevance to the current message."""

    key: str
    content: str
    relevance_score: float = Field(..., ge=0.0, le=1.0)
    tags: list[str] = Field(default_factory=list)
    access_count: int = Field(default=0, ge=0)


class MemoryAnalysis(SubAnalysis):
    """Memories relevant to the message plus recent topic patterns."""

    relevant_memories: list[MemorySnippet] = Field(default_factory=list)
    total_memories: int = Field(default=0, ge=0)
    search_terms: list[str] = Field(default_factory=list)
    frequent_topics: list[str] = Field(default_factory=list)
    learning_areas: list[str] = Field(default_factory=list)
    recent_trends: list[str] = Field(default_factory=list)


class RelationshipView(FrozenModel):
    """A known relationship touched by the message."""

    name: str
    relationship: str
    strength: float = Field(default=0.5, ge=0.0, le=1.0)
    context: list[str] = Field(default_factory=list)
    preferred_style: CommunicationStyle | None = None


class InteractionView(FrozenModel):
    """A recent interaction with one of the mentioned entities."""

    summary: str
    participants: list[str] = Field(default_factory=list)
    outcome: str = "neutral"
    timestamp: datetime = Field(default_factory=utc_now)


class SocialAnalysis(SubAnalysis):
    """Relationship context for the entities in the message."""

    active_relationships: list[RelationshipView] = Field(default_factory=list)
    recent_interactions: list[InteractionView] = Field(default_factory=list)
    communication_styles: list[str] = Field(default_factory=list)
    interaction_frequency: float = Field(default=0.0, ge=0.0)
    relationship_depth: str = "surface"
    style_signal: CommunicationStyle | None = Field(
        default=None,
        description="Explicit relationship-level style, if one is known",
    )

    @property
    def average_strength(self) -> float:
        if not self.active_relationships:
            return 0.0
        total = sum(rel.strength for rel in self.active_relationships)
        return total / len(self.active_relationships)
