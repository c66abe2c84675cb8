"""Tests for profile synthesis."""

import pytest

from contextrail.pipeline.models import (
    DEFAULT_PROFILE,
    CommunicationStyle,
    ErrorKind,
    MemoryAnalysis,
    MessageAnalysis,
    SessionAnalysis,
    SocialAnalysis,
    SubAnalysis,
)
from contextrail.pipeline.synthesis import (
    OTHER_WEIGHT,
    SYNTHESIS_STAGE,
    ProfileSynthesizer,
    Synthesizer,
    synthesize_or_default,
    weight_for,
)
from tests.factories import AnalysisFactory, ContextFactory


@pytest.fixture
def synthesizer() -> ProfileSynthesizer:
    return ProfileSynthesizer()


@pytest.fixture
def context():
    return ContextFactory.create()


class TestConfidence:
    """Tests for confidence_level and synthesis_confidence."""

    @pytest.mark.asyncio
    async def test_empty_map(self, synthesizer, context) -> None:
        profile = await synthesizer.synthesize({}, context)

        assert profile.confidence_level == 0.0
        assert profile.synthesis_confidence == 0.0
        assert profile.communication_style == CommunicationStyle.ADAPTIVE
        assert profile.signal_count == 0

    @pytest.mark.asyncio
    async def test_all_fallback_map(self, synthesizer, context) -> None:
        """Every input is a fallback: low confidence, default style."""
        results = {
            "message": MessageAnalysis.fallback(),
            "session": SessionAnalysis.fallback(),
            "memory": MemoryAnalysis.fallback(),
            "social": SocialAnalysis.fallback(),
        }

        profile = await synthesizer.synthesize(results, context)

        assert 0.0 <= profile.synthesis_confidence <= 0.2
        assert profile.synthesis_confidence == pytest.approx(0.1)
        assert profile.communication_style == CommunicationStyle.ADAPTIVE
        assert profile.adaptation_level == pytest.approx(0.5)
        assert profile.triggers == []
        assert profile.signal_count == 0
        assert any("defaults" in line for line in profile.reasoning)

    @pytest.mark.asyncio
    async def test_single_strong_signal(self, synthesizer, context) -> None:
        results = {"message": AnalysisFactory.message(confidence=0.8)}

        profile = await synthesizer.synthesize(results, context)

        assert profile.confidence_level == pytest.approx(0.8)
        assert profile.synthesis_confidence == pytest.approx(0.825)
        assert profile.signal_count == 1

    @pytest.mark.asyncio
    async def test_fallbacks_pull_confidence_down(self, synthesizer, context) -> None:
        results = {
            "message": AnalysisFactory.message(confidence=0.8),
            "memory": MemoryAnalysis.fallback(),
        }

        profile = await synthesizer.synthesize(results, context)

        # (0.3 * 0.8 + 0.2 * 0.1) / 0.5
        assert profile.confidence_level == pytest.approx(0.52)
        assert profile.synthesis_confidence == pytest.approx(0.545)
        assert profile.signal_count == 1

    @pytest.mark.asyncio
    async def test_signal_bonus_is_capped(self, synthesizer, context) -> None:
        results = {f"extra{i}": SubAnalysis(confidence=0.6) for i in range(6)}

        profile = await synthesizer.synthesize(results, context)

        assert profile.synthesis_confidence == pytest.approx(0.7)

    @pytest.mark.asyncio
    async def test_scores_stay_in_bounds(self, synthesizer, context) -> None:
        results = {f"extra{i}": SubAnalysis(confidence=1.0) for i in range(4)}

        profile = await synthesizer.synthesize(results, context)

        assert profile.synthesis_confidence == 1.0
        assert profile.confidence_level == 1.0

    def test_weights_by_kind(self) -> None:
        assert weight_for(AnalysisFactory.message()) == 0.3
        assert weight_for(AnalysisFactory.session()) == 0.25
        assert weight_for(AnalysisFactory.memory()) == 0.2
        assert weight_for(AnalysisFactory.social()) == 0.15
        assert weight_for(SubAnalysis(confidence=0.5)) == OTHER_WEIGHT


class TestStyle:
    """Communication style precedence."""

    @pytest.mark.asyncio
    async def test_relationship_signal_wins(self, synthesizer, context) -> None:
        results = {
            "message": AnalysisFactory.message(emotional_context="frustrated"),
            "social": AnalysisFactory.social(style_signal=CommunicationStyle.TECHNICAL),
        }

        profile = await synthesizer.synthesize(results, context)

        assert profile.communication_style == CommunicationStyle.TECHNICAL

    @pytest.mark.asyncio
    async def test_emotion_before_intent(self, synthesizer, context) -> None:
        results = {
            "message": AnalysisFactory.message(
                intent="learning_request", emotional_context="frustrated"
            )
        }

        profile = await synthesizer.synthesize(results, context)

        assert profile.communication_style == CommunicationStyle.SUPPORTIVE

    @pytest.mark.parametrize(
        ("intent", "emotion", "expected"),
        [
            ("general", "excited", CommunicationStyle.ENTHUSIASTIC),
            ("learning_request", "neutral", CommunicationStyle.EDUCATIONAL),
            ("technical_discussion", "neutral", CommunicationStyle.TECHNICAL),
            ("social_check_in", "neutral", CommunicationStyle.SOCIAL),
            ("general", "neutral", CommunicationStyle.ADAPTIVE),
        ],
    )
    @pytest.mark.asyncio
    async def test_message_styles(self, synthesizer, context, intent, emotion, expected) -> None:
        results = {
            "message": AnalysisFactory.message(intent=intent, emotional_context=emotion)
        }

        profile = await synthesizer.synthesize(results, context)

        assert profile.communication_style == expected

    @pytest.mark.asyncio
    async def test_fallback_results_give_no_style(self, synthesizer, context) -> None:
        results = {
            "social": SocialAnalysis(
                confidence=0.1,
                is_fallback=True,
                style_signal=CommunicationStyle.TECHNICAL,
            ),
            "message": AnalysisFactory.message(emotional_context="excited"),
        }

        profile = await synthesizer.synthesize(results, context)

        assert profile.communication_style == CommunicationStyle.ENTHUSIASTIC

    @pytest.mark.asyncio
    async def test_results_found_by_type_not_name(self, synthesizer, context) -> None:
        results = {"whatever": AnalysisFactory.message(intent="learning_request")}

        profile = await synthesizer.synthesize(results, context)

        assert profile.communication_style == CommunicationStyle.EDUCATIONAL


class TestAdaptation:
    """Adaptation level and triggers."""

    @pytest.mark.asyncio
    async def test_every_trigger_and_cap(self, synthesizer, context) -> None:
        results = {
            "message": AnalysisFactory.message(
                intent="learning_request", emotional_context="frustrated"
            ),
            "session": AnalysisFactory.session(cognitive_load=0.7, awareness_level="high"),
            "memory": AnalysisFactory.memory(memory_count=2),
            "social": AnalysisFactory.social(strengths=[0.9, 0.8]),
        }

        profile = await synthesizer.synthesize(results, context)

        assert profile.adaptation_level == 1.0
        assert profile.triggers == [
            "learning_context",
            "emotional_support_needed",
            "high_cognitive_load",
            "heightened_awareness",
            "memory_context_available",
            "strong_relationship_context",
        ]
        assert profile.signal_count == 4

    @pytest.mark.asyncio
    async def test_single_trigger(self, synthesizer, context) -> None:
        results = {"memory": AnalysisFactory.memory(memory_count=1)}

        profile = await synthesizer.synthesize(results, context)

        assert profile.adaptation_level == pytest.approx(0.6)
        assert profile.triggers == ["memory_context_available"]

    @pytest.mark.asyncio
    async def test_weak_relationships_ignored(self, synthesizer, context) -> None:
        results = {"social": AnalysisFactory.social(strengths=[0.7, 0.5])}

        profile = await synthesizer.synthesize(results, context)

        assert "strong_relationship_context" not in profile.triggers


class TestSynthesizeOrDefault:
    """The shared failure wrapper used by both scheduling modes."""

    @pytest.mark.asyncio
    async def test_success_passes_profile_through(self, synthesizer, context) -> None:
        profile, error = await synthesize_or_default(synthesizer, {}, context)

        assert error is None
        assert profile.communication_style == CommunicationStyle.ADAPTIVE

    @pytest.mark.asyncio
    async def test_wrong_return_type(self, context) -> None:
        class Sloppy(Synthesizer):
            async def synthesize(self, results, context):
                return None

        profile, error = await synthesize_or_default(Sloppy(), {}, context)

        assert profile == DEFAULT_PROFILE
        assert error.stage == SYNTHESIS_STAGE
        assert error.kind == ErrorKind.SYNTHESIS
        assert error.recoverable is True
        assert "returned NoneType" in error.message
