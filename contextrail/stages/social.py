"""Social analysis: relationships with the entities a message touches."""

import math
from typing import ClassVar

from contextrail.observability.logging import get_logger
from contextrail.pipeline.models import (
    CommunicationStyle,
    Context,
    InteractionView,
    RelationshipView,
    SocialAnalysis,
    SubAnalysis,
)
from contextrail.pipeline.stage import AnalysisStage
from contextrail.social.models import Interaction, Relationship
from contextrail.social.store import SocialStore
from contextrail.stages.text import KNOWN_NAMES, has_any, matching

logger = get_logger(__name__)

MAX_ENTITIES = 3
INTERACTION_LIMIT = 5
STRONG_RELATIONSHIP = 0.7
RELATIONSHIP_WORDS = ("we", "us", "our", "together", "team", "colleague", "friend")
DIRECT_ADDRESS = ("you", "your")

# Checked in order; every matching style is reported
STYLE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "technical",
        (
            "implement", "architecture", "algorithm", "optimization", "analysis",
            "system", "code", "function", "class", "interface",
        ),
    ),
    (
        "friendly",
        ("thanks", "please", "appreciate", "wonderful", "great", "awesome", "nice", "good"),
    ),
    ("direct", ("need", "must", "should", "require", "immediately", "now", "fix", "problem")),
    (
        "collaborative",
        ("we", "us", "our", "together", "team", "collaborate", "work with", "let's"),
    ),
    ("casual", ("hey", "hi", "yeah", "ok", "cool", "just", "like", "you know")),
)  # fmt: skip


def extract_entities(
    message: str,
    auxiliary_text: str | None = None,
    known: list[str] | None = None,
) -> list[str]:
    """Names of the social entities a message refers to, at most MAX_ENTITIES."""
    text = f"{message} {auxiliary_text or ''}".lower()
    entities = matching(text, KNOWN_NAMES)
    for name in known or []:
        if name.lower() not in entities:
            entities.append(name.lower())

    if not entities and has_any(text, RELATIONSHIP_WORDS):
        entities.append("user")
    if has_any(text, DIRECT_ADDRESS) and "user" not in entities:
        entities.append("user")
    return entities[:MAX_ENTITIES]


def infer_styles(message: str) -> list[str]:
    text = message.lower()
    styles = [style for style, keywords in STYLE_KEYWORDS if has_any(text, keywords)]
    return styles or ["neutral"]


def relationship_depth(average_strength: float, has_relationships: bool) -> str:
    if not has_relationships:
        return "surface"
    if average_strength > STRONG_RELATIONSHIP:
        return "deep"
    if average_strength > 0.4:
        return "moderate"
    return "surface"


def interaction_frequency(interactions: list[Interaction]) -> float:
    """Interactions per day over the most recent window (newest first)."""
    recent = interactions[:INTERACTION_LIMIT]
    if not recent:
        return 0.0
    day_span = 1
    if len(recent) > 1:
        seconds = abs((recent[0].created_at - recent[-1].created_at).total_seconds())
        day_span = math.ceil(seconds / 86400)
    return len(recent) / max(1, day_span)


def style_signal(
    relationships: list[Relationship],
    average_strength: float,
) -> CommunicationStyle | None:
    """Explicit style for this conversation, if the relationships define one."""
    for relationship in relationships:
        if relationship.preferred_style is not None:
            return relationship.preferred_style
    if relationships and average_strength > STRONG_RELATIONSHIP:
        return CommunicationStyle.PERSONALIZED
    return None


def social_confidence(
    entities: list[str],
    relationships: list[Relationship],
    interactions: list[Interaction],
) -> float:
    confidence = 0.3
    if entities:
        confidence += min(0.3, len(entities) * 0.15)
    if relationships:
        confidence += min(0.2, len(relationships) * 0.1)
        if any(rel.strength > 0.6 for rel in relationships):
            confidence += 0.1
    if interactions:
        confidence += min(0.2, len(interactions) * 0.05)
    return min(0.95, max(0.1, confidence))


class SocialAnalysisStage(AnalysisStage):
    """Store-backed relationship analysis.

    In sequential mode, entities found by the message analysis are looked
    up as well.
    """

    result_type: ClassVar[type[SubAnalysis]] = SocialAnalysis

    def __init__(self, store: SocialStore) -> None:
        self._store = store

    async def analyze(self, context: Context) -> SocialAnalysis:
        known = None
        if context.analysis is not None and not context.analysis.is_fallback:
            known = context.analysis.entities_mentioned

        entities = extract_entities(context.message, context.auxiliary_text, known)
        relationships: list[Relationship] = []
        interactions: list[Interaction] = []
        if entities:
            relationships = await self._store.get_relationships(entities)
            interactions = await self._store.get_recent_interactions(
                entities, limit=INTERACTION_LIMIT
            )

        views = [
            RelationshipView(
                name=rel.entity_name,
                relationship=rel.relationship_type,
                strength=rel.strength,
                context=[rel.notes] if rel.notes else [],
                preferred_style=rel.preferred_style,
            )
            for rel in relationships
        ]
        average = 0.0
        if relationships:
            average = sum(rel.strength for rel in relationships) / len(relationships)

        logger.debug(
            "relationships_loaded",
            entities=entities,
            relationships=len(relationships),
            interactions=len(interactions),
        )

        return SocialAnalysis(
            confidence=social_confidence(entities, relationships, interactions),
            active_relationships=views,
            recent_interactions=[
                InteractionView(
                    summary=item.summary,
                    participants=[item.entity_name],
                    outcome=item.emotional_tone or "neutral",
                    timestamp=item.created_at,
                )
                for item in interactions
            ],
            communication_styles=infer_styles(context.message),
            interaction_frequency=interaction_frequency(interactions),
            relationship_depth=relationship_depth(average, bool(relationships)),
            style_signal=style_signal(relationships, average),
        )
