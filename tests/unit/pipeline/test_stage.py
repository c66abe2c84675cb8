"""Tests for stage adapters, descriptors and deadlines."""

import asyncio

import pytest

from contextrail.pipeline.deadline import run_with_deadline
from contextrail.pipeline.exceptions import (
    InvalidStageOutputError,
    PipelineDefinitionError,
    StageTimeoutError,
)
from contextrail.pipeline.models import Context, MemoryAnalysis, SubAnalysis
from contextrail.pipeline.stage import (
    FunctionAnalysisStage,
    FunctionStage,
    SlotStage,
    StageDescriptor,
)
from tests.factories import AnalysisFactory, ContextFactory, StaticAnalysisStage, TypedAnalysisStage


class TestStageDescriptor:
    """Tests for descriptor validation."""

    def test_defaults(self) -> None:
        descriptor = StageDescriptor(name="a", stage=StaticAnalysisStage())

        assert descriptor.required is False
        assert descriptor.timeout_seconds is None

    def test_timeout_seconds(self) -> None:
        descriptor = StageDescriptor(name="a", stage=StaticAnalysisStage(), timeout_ms=250)

        assert descriptor.timeout_seconds == 0.25

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": ""},
            {"name": "a", "timeout_ms": 0},
            {"name": "a", "overwrites": frozenset({"message"})},
        ],
    )
    def test_invalid(self, kwargs) -> None:
        with pytest.raises(PipelineDefinitionError):
            StageDescriptor(stage=StaticAnalysisStage(), **kwargs)


class TestFunctionStages:
    """Plain callables adapted to the stage interfaces."""

    @pytest.mark.asyncio
    async def test_sync_function_stage(self) -> None:
        stage = FunctionStage(lambda ctx: ctx.model_copy(update={"user_id": "changed"}))

        result = await stage.run(ContextFactory.create())

        assert result.user_id == "changed"

    @pytest.mark.asyncio
    async def test_async_function_analysis_stage(self) -> None:
        async def analyze(ctx: Context) -> SubAnalysis:
            return SubAnalysis(confidence=0.4)

        stage = FunctionAnalysisStage(analyze, result_type=MemoryAnalysis)

        assert (await stage.analyze(ContextFactory.create())).confidence == 0.4
        assert isinstance(stage.fallback(ContextFactory.create()), MemoryAnalysis)


class TestSlotStage:
    """SlotStage runs an analysis in sequential mode."""

    @pytest.mark.asyncio
    async def test_writes_slot(self) -> None:
        memory = AnalysisFactory.memory(memory_count=1)
        stage = SlotStage(TypedAnalysisStage(memory), "memory_view")

        result = await stage.run(ContextFactory.create())

        assert result.memory_view == memory
        assert stage.slot == "memory_view"

    @pytest.mark.asyncio
    async def test_wrong_result_type(self) -> None:
        stage = SlotStage(TypedAnalysisStage(SubAnalysis(confidence=0.5)), "memory_view")

        with pytest.raises(InvalidStageOutputError, match="expected MemoryAnalysis"):
            await stage.run(ContextFactory.create())

    def test_unknown_slot(self) -> None:
        with pytest.raises(PipelineDefinitionError):
            SlotStage(StaticAnalysisStage(), "operations_log")


class TestRunWithDeadline:
    """Tests for per-stage deadlines."""

    @pytest.mark.asyncio
    async def test_completes_in_time(self) -> None:
        descriptor = StageDescriptor(name="quick", stage=StaticAnalysisStage(), timeout_ms=500)

        async def work() -> str:
            return "done"

        assert await run_with_deadline(descriptor, work()) == "done"

    @pytest.mark.asyncio
    async def test_times_out(self) -> None:
        descriptor = StageDescriptor(name="slow", stage=StaticAnalysisStage(), timeout_ms=10)

        with pytest.raises(StageTimeoutError, match="timed out after 10ms"):
            await run_with_deadline(descriptor, asyncio.sleep(1))

    @pytest.mark.asyncio
    async def test_unbounded(self) -> None:
        descriptor = StageDescriptor(name="free", stage=StaticAnalysisStage())

        async def work() -> int:
            await asyncio.sleep(0.01)
            return 1

        assert await run_with_deadline(descriptor, work()) == 1

    @pytest.mark.asyncio
    async def test_errors_propagate(self) -> None:
        descriptor = StageDescriptor(name="bad", stage=StaticAnalysisStage(), timeout_ms=500)

        async def work() -> None:
            raise ValueError("broken")

        with pytest.raises(ValueError, match="broken"):
            await run_with_deadline(descriptor, work())
