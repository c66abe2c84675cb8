"""Session analysis: conversational state of the current session."""

from typing import ClassVar

from contextrail.observability.logging import get_logger
from contextrail.pipeline.models import Context, SessionAnalysis, SubAnalysis, utc_now
from contextrail.pipeline.stage import AnalysisStage
from contextrail.session.store import SessionStore
from contextrail.stages.text import has_any, has_term, matching

logger = get_logger(__name__)

# Session-level intent, independent of the message analysis stage
SESSION_INTENTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("learning", ("how", "what", "explain")),
    ("technical", ("implement", "code", "technical")),
    ("social", ("hello", "hi", "chat")),
    ("creative", ("create", "design", "brainstorm")),
    ("reflection", ("think", "analyze", "consider")),
)
SESSION_EMOTIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("excited", ("excited", "amazing", "great")),
    ("frustrated", ("frustrated", "confused", "stuck")),
    ("curious", ("curious", "interested", "wondering")),
    ("urgent", ("urgent", "quickly", "asap")),
)
MODES = {
    "technical": "analytical",
    "social": "social",
    "learning": "contemplative",
    "reflection": "contemplative",
    "creative": "creative",
}
HIGH_AWARENESS = ("excited", "focused", "intense", "urgent")
LOW_AWARENESS = ("tired", "distracted", "casual", "relaxed")
TONES = {"excited": "positive", "frustrated": "concerned"}
TECHNICAL_TERMS = ("implement", "architecture", "algorithm", "optimization", "analysis")
ATTENTION_FOCUS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("personality_development", ("personality", "consciousness")),
    ("technical_implementation", ("code", "implement")),
    ("system_design", ("design", "architecture")),
    ("problem_solving", ("problem", "issue")),
)
EMOTIONAL_INDICATORS = ("excited", "frustrated", "curious", "focused")


def _first_label(text: str, table: tuple[tuple[str, tuple[str, ...]], ...], default: str) -> str:
    for label, keywords in table:
        if has_any(text, keywords):
            return label
    return default


def cognitive_load(message: str) -> float:
    """Estimate cognitive load from message length and vocabulary."""
    text = message.lower()
    load = 0.1
    if len(message) > 200:
        load += 0.2
    if has_any(text, ("complex", "difficult")):
        load += 0.2
    if has_any(text, ("multiple", "several")):
        load += 0.1
    if len(message.split()) > 50:
        load += 0.2
    load += 0.1 * len(matching(text, TECHNICAL_TERMS))
    return min(1.0, load)


def learning_state(text: str, intent: str) -> str:
    if intent == "learning" or has_term(text, "learn"):
        return "adaptive"
    if intent == "reflection" or has_term(text, "understand"):
        return "contemplative"
    if intent == "technical" or has_term(text, "implement"):
        return "focused"
    return "active"


def state_confidence(message: str) -> float:
    text = message.lower()
    confidence = 0.7
    if has_any(text, ("mode", "state")):
        confidence += 0.1
    if len(message) < 20:
        confidence -= 0.2
    if has_any(text, EMOTIONAL_INDICATORS):
        confidence += 0.1
    return min(0.95, max(0.3, confidence))


def analyze_session(
    message: str,
    session_id: str = "",
    turn_count: int = 0,
    duration_ms: float = 0.0,
    emotional_context: str | None = None,
) -> SessionAnalysis:
    """Derive the session state from the current message.

    Args:
        message: Incoming message
        session_id: Resolved session handle
        turn_count: Turns seen in this session, including this one
        duration_ms: Session age in milliseconds
        emotional_context: Emotion already detected upstream, if any
    """
    text = message.lower()
    intent = _first_label(text, SESSION_INTENTS, "general")
    emotion = emotional_context or _first_label(text, SESSION_EMOTIONS, "neutral")

    if has_any(emotion, HIGH_AWARENESS):
        awareness = "high"
    elif has_any(emotion, LOW_AWARENESS):
        awareness = "low"
    else:
        awareness = "medium"

    mode = MODES.get(intent, "analytical")
    load = cognitive_load(message)

    factors = []
    if load > 0.5:
        factors.append("high_cognitive_demand")
    if len(message) > 300:
        factors.append("complex_input")
    if awareness == "high":
        factors.append("heightened_awareness")
    if mode == "creative":
        factors.append("creative_thinking_required")
    if has_any(text, ("urgent", "quickly")):
        factors.append("time_pressure")

    return SessionAnalysis(
        confidence=state_confidence(message),
        session_id=session_id,
        turn_count=turn_count,
        mode=mode,
        awareness_level=awareness,
        emotional_tone=TONES.get(emotion, "neutral"),
        cognitive_load=load,
        attention_focus=_first_label(text, ATTENTION_FOCUS, "general_conversation"),
        learning_state=learning_state(text, intent),
        duration_ms=max(0.0, duration_ms),
        contextual_factors=factors,
    )


class SessionAnalysisStage(AnalysisStage):
    """Session state analysis backed by a SessionStore.

    Reads the session the orchestrator resolved for this run; it never
    resolves or creates a session itself.
    """

    result_type: ClassVar[type[SubAnalysis]] = SessionAnalysis

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    async def analyze(self, context: Context) -> SessionAnalysis:
        turn_count = 0
        duration_ms = (utc_now() - context.created_at).total_seconds() * 1000
        if context.session_id:
            handle = await self._store.get(context.session_id)
            if handle is None:
                logger.debug("session_not_found", session_id=context.session_id)
            else:
                turn_count = handle.turn_count
                duration_ms = handle.duration_ms

        emotion = None
        if context.analysis is not None and not context.analysis.is_fallback:
            emotion = context.analysis.emotional_context

        return analyze_session(
            context.message,
            session_id=context.session_id,
            turn_count=turn_count,
            duration_ms=duration_ms,
            emotional_context=emotion,
        )
