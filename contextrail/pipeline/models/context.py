"""The Context record threaded through a pipeline run."""

from datetime import datetime
from typing import Any

from pydantic import Field, SerializeAsAny

from contextrail.pipeline.models.analyses import (
    MemoryAnalysis,
    MessageAnalysis,
    SessionAnalysis,
    SocialAnalysis,
    SubAnalysis,
)
from contextrail.pipeline.models.base import FrozenModel, utc_now
from contextrail.pipeline.models.enums import ErrorKind
from contextrail.pipeline.models.profile import DerivedProfile

# Slots a stage may populate; everything else is owned by the engine
ENRICHMENT_SLOTS: tuple[str, ...] = (
    "analysis",
    "session_state",
    "memory_view",
    "social_view",
    "derived_profile",
)


class ErrorEntry(FrozenModel):
    """A stage failure recorded during a run."""

    stage: str = Field(..., description="Name of the failing stage")
    message: str = Field(..., description="Error text")
    recoverable: bool = Field(..., description="False when the failure failed the run")
    kind: ErrorKind = ErrorKind.FAILURE


class Context(FrozenModel):
    """One in-flight enrichment run.

    Immutable: stages receive a snapshot and return a new one. The engine
    owns operations_log and errors and only ever extends them.
    """

    message: str = Field(..., description="Input text, fixed for the run")
    auxiliary_text: str | None = Field(default=None, description="Caller-supplied context")
    created_at: datetime = Field(default_factory=utc_now, description="Run start")
    session_id: str = Field(default="", description="Resolved session handle")
    user_id: str = Field(default="system", description="User the run is for")

    operations_log: tuple[str, ...] = Field(default=(), description="Completed stages")
    errors: tuple[ErrorEntry, ...] = Field(default=(), description="Recorded failures")

    analysis: MessageAnalysis | None = None
    session_state: SessionAnalysis | None = None
    memory_view: MemoryAnalysis | None = None
    social_view: SocialAnalysis | None = None
    derived_profile: DerivedProfile | None = None

    sub_analyses: dict[str, SerializeAsAny[SubAnalysis]] = Field(
        default_factory=dict,
        description="Concurrent results keyed by stage name",
    )

    def with_operation(self, stage: str) -> "Context":
        """Return a copy with a stage appended to the operations log."""
        return self.model_copy(update={"operations_log": (*self.operations_log, stage)})

    def with_errors(self, *entries: ErrorEntry) -> "Context":
        """Return a copy with error entries appended."""
        return self.model_copy(update={"errors": (*self.errors, *entries)})

    def slots(self) -> dict[str, Any]:
        """Current value of every enrichment slot."""
        return {slot: getattr(self, slot) for slot in ENRICHMENT_SLOTS}

    @property
    def recoverable_errors(self) -> list[ErrorEntry]:
        return [entry for entry in self.errors if entry.recoverable]

    @property
    def fatal_errors(self) -> list[ErrorEntry]:
        return [entry for entry in self.errors if not entry.recoverable]
