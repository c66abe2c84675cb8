"""Message analysis: intent, emotional context and entity mentions."""

from typing import ClassVar

from contextrail.pipeline.models import Context, MessageAnalysis, SubAnalysis
from contextrail.pipeline.stage import AnalysisStage
from contextrail.stages.text import KNOWN_NAMES, has_any, matching

# Checked in order; the first matching intent wins
INTENT_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("learning_request", ("how", "what", "why")),
    ("assistance_request", ("help", "support")),
    ("technical_discussion", ("think", "analyze")),
    ("social_check_in", ("hello", "hi", "how are you")),
)
EMOTION_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("excited", ("excited", "amazing", "great")),
    ("frustrated", ("frustrated", "confused", "stuck")),
    ("curious", ("curious", "interested", "wondering")),
)
MEMORY_CUES = ("remember", "recall")
INSIGHT_CUES = ("think", "realize")

BASE_CONFIDENCE = 0.5
MAX_CONFIDENCE = 0.95


def detect_intent(text: str) -> str:
    for intent, keywords in INTENT_KEYWORDS:
        if has_any(text, keywords):
            return intent
    return "general"


def detect_emotion(text: str) -> str:
    for emotion, keywords in EMOTION_KEYWORDS:
        if has_any(text, keywords):
            return emotion
    return "neutral"


def analyze_message(message: str) -> MessageAnalysis:
    """Classify a message with keyword heuristics.

    Confidence grows with how complete the reading is: a specific intent,
    more than one suggested operation, named entities and a non-neutral
    emotion each raise it, up to MAX_CONFIDENCE.
    """
    text = message.lower()
    intent = detect_intent(text)
    emotion = detect_emotion(text)
    entities = matching(text, KNOWN_NAMES)

    requires_memory = has_any(text, MEMORY_CUES)
    requires_social = bool(entities)
    requires_insight_storage = has_any(text, INSIGHT_CUES)

    operations = ["basic_response"]
    if requires_memory:
        operations.append("recall_memory")
    if requires_social:
        operations.append("consult_relationships")
    if requires_insight_storage:
        operations.append("store_insight")

    reasoning = []
    confidence = BASE_CONFIDENCE
    if intent != "general":
        confidence += 0.15
        reasoning.append(f"Intent detection: {intent}")
    if len(operations) > 1:
        confidence += 0.1
    if entities:
        confidence += 0.1
        reasoning.append(f"Entities identified: {', '.join(entities)}")
    if emotion != "neutral":
        confidence += 0.1
        reasoning.append(f"Emotional context: {emotion}")

    return MessageAnalysis(
        confidence=min(MAX_CONFIDENCE, confidence),
        intent=intent,
        operations=operations,
        entities_mentioned=entities,
        emotional_context=emotion,
        requires_memory=requires_memory,
        requires_social=requires_social,
        requires_insight_storage=requires_insight_storage,
        reasoning=reasoning,
    )


class MessageAnalysisStage(AnalysisStage):
    """Keyword-based message analysis."""

    result_type: ClassVar[type[SubAnalysis]] = MessageAnalysis

    async def analyze(self, context: Context) -> MessageAnalysis:
        return analyze_message(context.message)
