"""Result models returned by the engines and the orchestrator."""

from pydantic import BaseModel, Field, SerializeAsAny

from contextrail.pipeline.models import (
    Context,
    ErrorEntry,
    ExecutionTrace,
    PipelineMode,
    SubAnalysis,
)


class SequentialResult(BaseModel):
    """Outcome of a sequential engine run."""

    context: Context = Field(..., description="Context after the last successful stage")
    trace: ExecutionTrace = Field(default_factory=ExecutionTrace)
    success: bool
    total_time_ms: float = Field(default=0.0, ge=0)


class ConcurrentResult(BaseModel):
    """Outcome of a concurrent engine run.

    results always holds exactly one entry per registered stage, in
    registration order, whatever the order in which stages completed.
    """

    results: dict[str, SerializeAsAny[SubAnalysis]] = Field(default_factory=dict)
    trace: ExecutionTrace = Field(default_factory=ExecutionTrace)
    errors: list[ErrorEntry] = Field(default_factory=list)
    completed: list[str] = Field(
        default_factory=list,
        description="Stages that succeeded, in registration order",
    )
    success: bool
    total_time_ms: float = Field(default=0.0, ge=0)


class PipelineResult(BaseModel):
    """Complete result of a pipeline run as seen by the caller.

    success distinguishes a failed run from a degraded one; a successful
    run may still carry recoverable entries in context.errors.

    context.derived_profile is either a synthesized profile or
    DEFAULT_PROFILE, with one exception: it is None when synthesis did not
    run. That happens when synthesis is disabled, or after a required
    concurrent stage failed and synthesize_on_failure is off (the default).
    Fallback entries in sub_analyses are still present in that case.
    """

    pipeline: str = Field(..., description="Pipeline or preset name")
    mode: PipelineMode
    context: Context = Field(..., description="Final state of the run")
    trace: ExecutionTrace = Field(default_factory=ExecutionTrace)
    success: bool
    total_time_ms: float = Field(default=0.0, ge=0)

    @property
    def errors(self) -> tuple[ErrorEntry, ...]:
        return self.context.errors
