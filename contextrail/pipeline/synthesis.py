"""Profile synthesis: combine sub-analyses into one DerivedProfile.

The synthesizer reads every entry of a merged result map, fallback or
not. Results are recognised by type, never by stage name, so renamed or
extra stages still contribute.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TypeVar

from contextrail.observability.logging import get_logger
from contextrail.pipeline.exceptions import SynthesisError, describe_exception
from contextrail.pipeline.models import (
    DEFAULT_PROFILE,
    CommunicationStyle,
    Context,
    DerivedProfile,
    ErrorEntry,
    ErrorKind,
    MemoryAnalysis,
    MessageAnalysis,
    SessionAnalysis,
    SocialAnalysis,
    SubAnalysis,
    clamp,
)

logger = get_logger(__name__)

A = TypeVar("A", bound=SubAnalysis)

# Stage name recorded for synthesis errors, trace entries and operations
SYNTHESIS_STAGE = "synthesis"

# Contribution of each analysis kind to the confidence scores
CONFIDENCE_WEIGHTS: dict[type[SubAnalysis], float] = {
    MessageAnalysis: 0.3,
    SessionAnalysis: 0.25,
    MemoryAnalysis: 0.2,
    SocialAnalysis: 0.15,
}
OTHER_WEIGHT = 0.1

SIGNAL_THRESHOLD = 0.5
SIGNAL_BONUS = 0.025
MAX_SIGNAL_BONUS = 0.1

BASE_ADAPTATION = 0.5
STRONG_RELATIONSHIP = 0.7
HIGH_COGNITIVE_LOAD = 0.6

EMOTION_STYLES: dict[str, CommunicationStyle] = {
    "frustrated": CommunicationStyle.SUPPORTIVE,
    "excited": CommunicationStyle.ENTHUSIASTIC,
}
INTENT_STYLES: dict[str, CommunicationStyle] = {
    "learning_request": CommunicationStyle.EDUCATIONAL,
    "technical_discussion": CommunicationStyle.TECHNICAL,
    "social_check_in": CommunicationStyle.SOCIAL,
}


def weight_for(result: SubAnalysis) -> float:
    """Confidence weight of a result, by analysis kind."""
    for kind, weight in CONFIDENCE_WEIGHTS.items():
        if isinstance(result, kind):
            return weight
    return OTHER_WEIGHT


def _first(results: Mapping[str, SubAnalysis], kind: type[A]) -> A | None:
    """First non-fallback result of the given kind, in map order."""
    for result in results.values():
        if isinstance(result, kind) and not result.is_fallback:
            return result
    return None


class Synthesizer(ABC):
    """Turns a merged result map into a derived profile."""

    @abstractmethod
    async def synthesize(
        self,
        results: Mapping[str, SubAnalysis],
        context: Context,
    ) -> DerivedProfile:
        """Build a profile from stage results.

        Must be total over maps where every entry is a fallback. Raising is
        allowed; callers go through synthesize_or_default, which
        substitutes DEFAULT_PROFILE.
        """


async def synthesize_or_default(
    synthesizer: Synthesizer,
    results: Mapping[str, SubAnalysis],
    context: Context,
) -> tuple[DerivedProfile, ErrorEntry | None]:
    """Run a synthesizer, substituting DEFAULT_PROFILE on failure.

    A raised exception or a return value that is not a DerivedProfile
    yields DEFAULT_PROFILE plus a recoverable synthesis error entry, so the
    profile is never partial and the failure never propagates.

    Returns:
        Tuple of (profile, error entry or None)
    """
    try:
        profile = await synthesizer.synthesize(results, context)
        if not isinstance(profile, DerivedProfile):
            raise SynthesisError(
                f"Synthesizer returned {type(profile).__name__}, expected DerivedProfile"
            )
    except Exception as exc:  # noqa: BLE001
        error_text = describe_exception(exc)
        logger.warning("synthesis_failed", error=error_text)
        return DEFAULT_PROFILE, ErrorEntry(
            stage=SYNTHESIS_STAGE,
            message=error_text,
            recoverable=True,
            kind=ErrorKind.SYNTHESIS,
        )
    return profile, None


class ProfileSynthesizer(Synthesizer):
    """Weighted, rule-based synthesizer.

    Style precedence: an explicit relationship style from the social
    analysis, then a style inferred from the message's emotional context
    or intent, then ADAPTIVE. Only non-fallback results supply style and
    adaptation signals; all results count toward the confidence scores.
    """

    async def synthesize(
        self,
        results: Mapping[str, SubAnalysis],
        context: Context,  # noqa: ARG002
    ) -> DerivedProfile:
        message = _first(results, MessageAnalysis)
        session = _first(results, SessionAnalysis)
        memory = _first(results, MemoryAnalysis)
        social = _first(results, SocialAnalysis)

        triggers: list[str] = []
        reasoning: list[str] = []

        style = self._style(message, social, reasoning)
        adaptation = self._adaptation(message, session, memory, social, triggers, reasoning)
        confidence_level, synthesis_confidence = self._confidence(results)
        signal_count = sum(1 for result in results.values() if not result.is_fallback)

        if signal_count == 0:
            reasoning.append("No live analyses - profile built from defaults")

        return DerivedProfile(
            communication_style=style,
            confidence_level=confidence_level,
            adaptation_level=adaptation,
            synthesis_confidence=synthesis_confidence,
            triggers=triggers,
            reasoning=reasoning,
            signal_count=signal_count,
        )

    def _style(
        self,
        message: MessageAnalysis | None,
        social: SocialAnalysis | None,
        reasoning: list[str],
    ) -> CommunicationStyle:
        if social is not None and social.style_signal is not None:
            reasoning.append(f"Relationship style signal: {social.style_signal.value}")
            return social.style_signal

        if message is not None:
            style = EMOTION_STYLES.get(message.emotional_context) or INTENT_STYLES.get(
                message.intent
            )
            if style is not None:
                reasoning.append(
                    f"Style inferred from message ({message.intent}, {message.emotional_context})"
                )
                return style

        return CommunicationStyle.ADAPTIVE

    def _adaptation(
        self,
        message: MessageAnalysis | None,
        session: SessionAnalysis | None,
        memory: MemoryAnalysis | None,
        social: SocialAnalysis | None,
        triggers: list[str],
        reasoning: list[str],
    ) -> float:
        level = BASE_ADAPTATION

        if message is not None:
            if message.intent == "learning_request":
                level += 0.2
                triggers.append("learning_context")
                reasoning.append("Learning intent detected - adapting to teaching mode")
            if message.emotional_context == "frustrated":
                level += 0.3
                triggers.append("emotional_support_needed")
                reasoning.append("Frustration detected - prioritizing support and clarity")

        if session is not None:
            if session.cognitive_load > HIGH_COGNITIVE_LOAD:
                level += 0.2
                triggers.append("high_cognitive_load")
                reasoning.append("High cognitive load detected - simplifying communication")
            if session.awareness_level == "high":
                level += 0.1
                triggers.append("heightened_awareness")
                reasoning.append("High awareness - can handle complex concepts")

        if memory is not None and memory.relevant_memories:
            level += 0.1
            triggers.append("memory_context_available")
            reasoning.append(f"Relevant memories available ({len(memory.relevant_memories)})")

        if social is not None and social.average_strength > STRONG_RELATIONSHIP:
            level += 0.15
            triggers.append("strong_relationship_context")
            reasoning.append("Strong relationship context - personalizing approach")

        return min(1.0, level)

    def _confidence(self, results: Mapping[str, SubAnalysis]) -> tuple[float, float]:
        """Return (confidence_level, synthesis_confidence)."""
        if not results:
            return 0.0, 0.0

        total_weight = 0.0
        weighted = 0.0
        for result in results.values():
            weight = weight_for(result)
            total_weight += weight
            weighted += weight * result.confidence
        mean = weighted / total_weight

        strong = sum(
            1
            for result in results.values()
            if not result.is_fallback and result.confidence > SIGNAL_THRESHOLD
        )
        bonus = min(MAX_SIGNAL_BONUS, strong * SIGNAL_BONUS)
        ceiling = max(result.confidence for result in results.values()) + bonus

        return clamp(mean), clamp(min(mean + bonus, ceiling))
