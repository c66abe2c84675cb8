"""Sequential engine: stages run one after another on an accumulating context.

Each stage receives the Context produced by the previous successful stage.
A failing optional stage is recorded and skipped (its partial output is
discarded); a failing required stage stops the run, and the result holds
the context as of the last successful stage.
"""

import time
from collections.abc import Sequence
from datetime import datetime

from contextrail.observability.logging import get_logger, preview
from contextrail.observability.metrics import observe_stage
from contextrail.pipeline.deadline import run_with_deadline
from contextrail.pipeline.exceptions import (
    InvalidStageOutputError,
    PipelineDefinitionError,
    SlotOverwriteError,
    StageTimeoutError,
    describe_exception,
)
from contextrail.pipeline.models import (
    ENRICHMENT_SLOTS,
    Context,
    ErrorEntry,
    ErrorKind,
    ExecutionTrace,
    StageOutcome,
    TraceEntry,
    utc_now,
)
from contextrail.pipeline.result import SequentialResult
from contextrail.pipeline.stage import ContextStage, StageDescriptor, ensure_unique_names

logger = get_logger(__name__)


def merge_context(running: Context, output: Context, descriptor: StageDescriptor) -> Context:
    """Take the enrichment a stage produced and apply it to the running context.

    Only enrichment slots are read from the stage's output; identity fields
    and the operations log stay as the engine holds them. A populated slot
    may only change if the stage declared it in descriptor.overwrites.

    A stage that succeeded in a degraded way may report errors by adding
    them to its output. Those entries are appended as recoverable errors;
    entries the stage dropped or rewrote are ignored.

    Raises:
        SlotOverwriteError: If the stage changed a populated slot it does not own
    """
    updates: dict[str, object] = {}
    for slot in ENRICHMENT_SLOTS:
        current = getattr(running, slot)
        produced = getattr(output, slot)
        if produced == current:
            continue
        if current is not None and slot not in descriptor.overwrites:
            raise SlotOverwriteError(descriptor.name, slot)
        updates[slot] = produced

    reported = tuple(
        entry.model_copy(update={"recoverable": True})
        for entry in output.errors
        if entry not in running.errors
    )
    if reported:
        updates["errors"] = (*running.errors, *reported)

    if not updates:
        return running
    return running.model_copy(update=updates)


class SequentialEngine:
    """Run an ordered list of ContextStage descriptors.

    The engine never raises for a stage failure: every failure, including
    timeouts, wrong return types and exceptions without a message, becomes
    an ErrorEntry on the returned context.
    """

    def __init__(self, pipeline_name: str = "sequential", record_metrics: bool = True) -> None:
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
    ) -> SequentialResult:
        """Execute stages in registration order.

        Args:
            context: Initial context handed to the first stage
            stages: Ordered stage descriptors; names must be unique

        Returns:
            SequentialResult with the final context, trace and success flag

        Raises:
            PipelineDefinitionError: If a descriptor is not a ContextStage or
                names repeat
        """
        ensure_unique_names(stages)
        for descriptor in stages:
            if not isinstance(descriptor.stage, ContextStage):
                raise PipelineDefinitionError(
                    f"Stage '{descriptor.name}' is not a ContextStage and cannot run sequentially"
                )

        run_start = time.perf_counter()
        trace = ExecutionTrace()
        running = context
        success = True

        logger.info(
            "sequential_run_started",
            pipeline=self._pipeline_name,
            stage_count=len(stages),
            message_preview=preview(context.message),
        )

        for descriptor in stages:
            started_at = utc_now()
            step_start = time.perf_counter()
            logger.debug("stage_started", stage=descriptor.name, required=descriptor.required)

            try:
                output = await run_with_deadline(descriptor, descriptor.stage.run(running))
                if not isinstance(output, Context):
                    raise InvalidStageOutputError(descriptor.name, "Context", output)
                merged = merge_context(running, output, descriptor)
            except Exception as exc:  # noqa: BLE001
                timed_out = isinstance(exc, StageTimeoutError)
                outcome = StageOutcome.TIMEOUT if timed_out else StageOutcome.FAILED
                error_text = describe_exception(exc)
                self._record(trace, descriptor, started_at, step_start, outcome, error_text)
                running = running.with_errors(
                    ErrorEntry(
                        stage=descriptor.name,
                        message=error_text,
                        recoverable=not descriptor.required,
                        kind=ErrorKind.TIMEOUT if timed_out else ErrorKind.FAILURE,
                    )
                )
                logger.warning(
                    "stage_failed",
                    stage=descriptor.name,
                    required=descriptor.required,
                    outcome=outcome.value,
                    error=error_text,
                )
                if descriptor.required:
                    success = False
                    break
                continue

            running = merged.with_operation(descriptor.name)
            self._record(trace, descriptor, started_at, step_start, StageOutcome.SUCCESS)
            logger.debug("stage_completed", stage=descriptor.name)

        total_time_ms = (time.perf_counter() - run_start) * 1000
        logger.info(
            "sequential_run_completed",
            pipeline=self._pipeline_name,
            success=success,
            completed=len(running.operations_log) - len(context.operations_log),
            error_count=len(running.errors) - len(context.errors),
            total_time_ms=round(total_time_ms, 2),
        )

        return SequentialResult(
            context=running,
            trace=trace,
            success=success,
            total_time_ms=total_time_ms,
        )

    def _record(
        self,
        trace: ExecutionTrace,
        descriptor: StageDescriptor,
        started_at: datetime,
        step_start: float,
        outcome: StageOutcome,
        error: str | None = None,
    ) -> None:
        elapsed = time.perf_counter() - step_start
        trace.record(
            TraceEntry(
                stage=descriptor.name,
                started_at=started_at,
                ended_at=utc_now(),
                duration_ms=elapsed * 1000,
                outcome=outcome,
                error=error,
            )
        )
        if self._record_metrics:
            observe_stage(self._pipeline_name, descriptor.name, outcome.value, elapsed)
