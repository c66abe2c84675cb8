"""Tests for the sequential personality stage and stage factories."""

import pytest

from contextrail.config.models.pipeline import PipelineConfig
from contextrail.memory.stores import InMemoryMemoryStore
from contextrail.pipeline.models import DEFAULT_PROFILE, CommunicationStyle, ErrorKind
from contextrail.pipeline.stage import AnalysisStage, ContextStage
from contextrail.pipeline.synthesis import SYNTHESIS_STAGE, Synthesizer
from contextrail.session.stores import InMemorySessionStore
from contextrail.social.stores import InMemorySocialStore
from contextrail.stages import (
    PersonalityContextStage,
    create_analysis_stages,
    create_sequential_stages,
)
from tests.factories import AnalysisFactory, ContextFactory


class BrokenSynthesizer(Synthesizer):
    async def synthesize(self, results, context):
        raise RuntimeError("boom")


class TestPersonalityContextStage:
    """Tests for PersonalityContextStage."""

    @pytest.mark.asyncio
    async def test_synthesizes_from_slots(self) -> None:
        context = ContextFactory.create(
            analysis=AnalysisFactory.message(intent="learning_request"),
            memory_view=AnalysisFactory.memory(memory_count=1),
        )

        result = await PersonalityContextStage().run(context)

        profile = result.derived_profile
        assert profile is not None
        assert profile.communication_style == CommunicationStyle.EDUCATIONAL
        assert profile.signal_count == 2
        assert "memory_context_available" in profile.triggers

    @pytest.mark.asyncio
    async def test_empty_slots(self) -> None:
        result = await PersonalityContextStage().run(ContextFactory.create())

        assert result.derived_profile.synthesis_confidence == 0.0
        assert result.derived_profile.communication_style == CommunicationStyle.ADAPTIVE

    @pytest.mark.asyncio
    async def test_synthesizer_failure_stores_default_profile(self) -> None:
        """A failing synthesizer yields DEFAULT_PROFILE and a recoverable error."""
        context = ContextFactory.create(analysis=AnalysisFactory.message())

        result = await PersonalityContextStage(BrokenSynthesizer()).run(context)

        assert result.derived_profile == DEFAULT_PROFILE
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.stage == SYNTHESIS_STAGE
        assert error.kind == ErrorKind.SYNTHESIS
        assert error.recoverable is True
        assert error.message == "boom"


class TestStageFactories:
    """The reference stages cover every configured stage name."""

    def test_analysis_stages_match_presets(self) -> None:
        stages = create_analysis_stages(
            InMemorySessionStore(), InMemoryMemoryStore(), InMemorySocialStore()
        )

        assert all(isinstance(stage, AnalysisStage) for stage in stages.values())
        for preset in PipelineConfig().concurrent.values():
            assert set(preset.stages) <= set(stages)

    def test_sequential_stages_match_config(self) -> None:
        stages = create_sequential_stages(
            InMemorySessionStore(), InMemoryMemoryStore(), InMemorySocialStore()
        )

        assert all(isinstance(stage, ContextStage) for stage in stages.values())
        assert list(stages) == list(PipelineConfig().sequential.stages)
