"""Concurrent engine: fan-out analysis stages, fan-in at a barrier.

Every stage is launched at once against the same frozen Context snapshot.
Each stage is bounded by its own deadline; the barrier is reached once
every stage has either completed or been abandoned. The merged result
always holds one entry per registered stage, keyed by name, in
registration order.
"""

import asyncio
import time
from collections.abc import Sequence

from contextrail.observability.logging import get_logger, preview
from contextrail.observability.metrics import observe_stage
from contextrail.pipeline.deadline import run_with_deadline
from contextrail.pipeline.exceptions import (
    InvalidStageOutputError,
    PipelineDefinitionError,
    StageTimeoutError,
    describe_exception,
)
from contextrail.pipeline.models import (
    FALLBACK_CONFIDENCE,
    Context,
    ErrorEntry,
    ErrorKind,
    ExecutionTrace,
    StageOutcome,
    SubAnalysis,
    TraceEntry,
    utc_now,
)
from contextrail.pipeline.result import ConcurrentResult
from contextrail.pipeline.stage import AnalysisStage, StageDescriptor, ensure_unique_names

logger = get_logger(__name__)


class _StageReport:
    """What one stage delivered to the barrier."""

    __slots__ = ("result", "outcome", "error")

    def __init__(
        self,
        outcome: StageOutcome,
        result: SubAnalysis | None = None,
        error: str | None = None,
    ) -> None:
        self.outcome = outcome
        self.result = result
        self.error = error


class ConcurrentEngine:
    """Run AnalysisStage descriptors in parallel and merge their results."""

    def __init__(self, pipeline_name: str = "concurrent", record_metrics: bool = True) -> None:
        """Initialize the engine.

        Args:
            pipeline_name: Label used in logs and metrics
            record_metrics: Whether to record Prometheus stage metrics
        """
        self._pipeline_name = pipeline_name
        self._record_metrics = record_metrics

    async def run(
        self,
        context: Context,
        stages: Sequence[StageDescriptor],
    ) -> ConcurrentResult:
        """Execute all stages concurrently.

        A required stage that fails or times out does not cancel its
        siblings; the engine still waits for the full barrier and then
        reports success=False.

        Args:
            context: Read-only snapshot handed to every stage
            stages: Stage descriptors; names must be unique

        Returns:
            ConcurrentResult with one entry per stage

        Raises:
            PipelineDefinitionError: If a descriptor is not an AnalysisStage
                or names repeat
        """
        ensure_unique_names(stages)
        for descriptor in stages:
            if not isinstance(descriptor.stage, AnalysisStage):
                raise PipelineDefinitionError(
                    f"Stage '{descriptor.name}' is not an AnalysisStage and cannot run concurrently"
                )

        run_start = time.perf_counter()
        trace = ExecutionTrace()

        logger.info(
            "concurrent_run_started",
            pipeline=self._pipeline_name,
            stage_count=len(stages),
            message_preview=preview(context.message),
        )

        reports = await asyncio.gather(
            *(self._execute(descriptor, context, trace) for descriptor in stages)
        )

        results: dict[str, SubAnalysis] = {}
        errors: list[ErrorEntry] = []
        completed: list[str] = []
        success = True

        for descriptor, report in zip(stages, reports, strict=True):
            if report.outcome == StageOutcome.SUCCESS and report.result is not None:
                results[descriptor.name] = report.result
                completed.append(descriptor.name)
                continue

            results[descriptor.name] = self._fallback(descriptor, context)
            errors.append(
                ErrorEntry(
                    stage=descriptor.name,
                    message=report.error or report.outcome.value,
                    recoverable=not descriptor.required,
                    kind=(
                        ErrorKind.TIMEOUT
                        if report.outcome == StageOutcome.TIMEOUT
                        else ErrorKind.FAILURE
                    ),
                )
            )
            if descriptor.required:
                success = False

        total_time_ms = (time.perf_counter() - run_start) * 1000
        logger.info(
            "concurrent_run_completed",
            pipeline=self._pipeline_name,
            success=success,
            completed=len(completed),
            fallbacks=len(stages) - len(completed),
            total_time_ms=round(total_time_ms, 2),
        )

        return ConcurrentResult(
            results=results,
            trace=trace,
            errors=errors,
            completed=completed,
            success=success,
            total_time_ms=total_time_ms,
        )

    async def _execute(
        self,
        descriptor: StageDescriptor,
        context: Context,
        trace: ExecutionTrace,
    ) -> _StageReport:
        started_at = utc_now()
        step_start = time.perf_counter()
        logger.debug("stage_started", stage=descriptor.name, required=descriptor.required)

        try:
            result = await run_with_deadline(descriptor, descriptor.stage.analyze(context))
            if not isinstance(result, SubAnalysis):
                raise InvalidStageOutputError(descriptor.name, "SubAnalysis", result)
            report = _StageReport(StageOutcome.SUCCESS, result=result)
        except StageTimeoutError as exc:
            report = _StageReport(StageOutcome.TIMEOUT, error=describe_exception(exc))
            logger.warning(
                "stage_timed_out",
                stage=descriptor.name,
                required=descriptor.required,
                timeout_ms=descriptor.timeout_ms,
            )
        except Exception as exc:  # noqa: BLE001
            report = _StageReport(StageOutcome.FAILED, error=describe_exception(exc))
            logger.warning(
                "stage_failed",
                stage=descriptor.name,
                required=descriptor.required,
                error=report.error,
            )

        elapsed = time.perf_counter() - step_start
        # Appended as each stage finishes, so the trace is in completion order
        trace.record(
            TraceEntry(
                stage=descriptor.name,
                started_at=started_at,
                ended_at=utc_now(),
                duration_ms=elapsed * 1000,
                outcome=report.outcome,
                error=report.error,
            )
        )
        if self._record_metrics:
            observe_stage(self._pipeline_name, descriptor.name, report.outcome.value, elapsed)
        return report

    def _fallback(self, descriptor: StageDescriptor, context: Context) -> SubAnalysis:
        stage = descriptor.stage
        try:
            substitute = stage.fallback(context)  # type: ignore[union-attr]
            if not isinstance(substitute, SubAnalysis):
                raise InvalidStageOutputError(descriptor.name, "SubAnalysis", substitute)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "stage_fallback_failed",
                stage=descriptor.name,
                error=describe_exception(exc),
            )
            substitute = SubAnalysis.fallback()
        return substitute.model_copy(
            update={"confidence": FALLBACK_CONFIDENCE, "is_fallback": True}
        )
