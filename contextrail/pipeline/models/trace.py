"""Execution trace models."""

from datetime import datetime

from pydantic import BaseModel, Field

from contextrail.pipeline.models.enums import StageOutcome


class TraceEntry(BaseModel):
    """Timing and outcome of a single stage attempt."""

    stage: str = Field(..., description="Stage name")
    started_at: datetime
    ended_at: datetime
    duration_ms: float = Field(ge=0)
    outcome: StageOutcome
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome == StageOutcome.SUCCESS


class ExecutionTrace(BaseModel):
    """Ordered record of stage attempts in one run.

    Sequential runs append in invocation order, concurrent runs in
    completion order. Look results up by stage name, never by position.
    """

    entries: list[TraceEntry] = Field(default_factory=list)

    def record(self, entry: TraceEntry) -> None:
        self.entries.append(entry)

    def for_stage(self, stage: str) -> TraceEntry | None:
        """Most recent attempt of a stage, if any."""
        for entry in reversed(self.entries):
            if entry.stage == stage:
                return entry
        return None

    def outcomes(self) -> dict[str, StageOutcome]:
        """Stage name to outcome, independent of trace order."""
        return {entry.stage: entry.outcome for entry in self.entries}

    @property
    def stages(self) -> list[str]:
        return [entry.stage for entry in self.entries]

    @property
    def failed_stages(self) -> list[str]:
        return [entry.stage for entry in self.entries if not entry.success]

    def __len__(self) -> int:
        return len(self.entries)
