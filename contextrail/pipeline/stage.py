"""Stage interfaces and registration descriptors.

A stage is one unit of context enrichment. Sequential pipelines run
ContextStage implementations, each returning an enriched copy of the
Context it received. Concurrent pipelines run AnalysisStage
implementations, each returning a named SubAnalysis computed from a
shared, read-only Context snapshot.

Plain callables can be registered through FunctionStage and
FunctionAnalysisStage. Synchronous callables run in a worker thread so
they overlap with other stages; a thread that misses its deadline keeps
running until it returns on its own.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, ClassVar

from contextrail.pipeline.exceptions import (
    DuplicateStageError,
    InvalidStageOutputError,
    PipelineDefinitionError,
)
from contextrail.pipeline.models import ENRICHMENT_SLOTS, Context, SubAnalysis

ContextCallable = Callable[[Context], Context | Awaitable[Context]]
AnalysisCallable = Callable[[Context], SubAnalysis | Awaitable[SubAnalysis]]


class ContextStage(ABC):
    """Stage that enriches the running Context (sequential mode)."""

    @abstractmethod
    async def run(self, context: Context) -> Context:
        """Return a new Context with this stage's enrichment applied."""


class AnalysisStage(ABC):
    """Stage that produces a named sub-analysis (concurrent mode).

    result_type documents the shape of the result and supplies the
    zero-value fallback used when analyze() fails or times out.
    """

    result_type: ClassVar[type[SubAnalysis]] = SubAnalysis

    @abstractmethod
    async def analyze(self, context: Context) -> SubAnalysis:
        """Compute this stage's sub-analysis from a read-only snapshot."""

    def fallback(self, context: Context) -> SubAnalysis:  # noqa: ARG002
        """Result substituted when analyze() does not deliver."""
        return self.result_type.fallback()


async def _call(func: Callable[[Context], Any], context: Context) -> Any:
    if inspect.iscoroutinefunction(func):
        return await func(context)
    result = await asyncio.to_thread(func, context)
    if inspect.isawaitable(result):
        return await result
    return result


class FunctionStage(ContextStage):
    """Adapt a plain callable to the ContextStage interface."""

    def __init__(self, func: ContextCallable) -> None:
        self._func = func

    async def run(self, context: Context) -> Context:
        return await _call(self._func, context)


class FunctionAnalysisStage(AnalysisStage):
    """Adapt a plain callable to the AnalysisStage interface."""

    def __init__(
        self,
        func: AnalysisCallable,
        result_type: type[SubAnalysis] = SubAnalysis,
    ) -> None:
        self._func = func
        self._result_type = result_type

    async def analyze(self, context: Context) -> SubAnalysis:
        return await _call(self._func, context)

    def fallback(self, context: Context) -> SubAnalysis:  # noqa: ARG002
        return self._result_type.fallback()


class SlotStage(ContextStage):
    """Run an AnalysisStage sequentially, storing its result in a slot.

    Lets the same analysis implementation serve both scheduling modes.
    In sequential mode the analysis sees every slot populated so far.
    """

    def __init__(self, analysis: AnalysisStage, slot: str) -> None:
        if slot not in ENRICHMENT_SLOTS:
            raise PipelineDefinitionError(f"Unknown enrichment slot: {slot}")
        self._analysis = analysis
        self._slot = slot

    @property
    def slot(self) -> str:
        return self._slot

    async def run(self, context: Context) -> Context:
        result = await self._analysis.analyze(context)
        expected = self._analysis.result_type
        if not isinstance(result, expected):
            raise InvalidStageOutputError(self._slot, expected.__name__, result)
        return context.model_copy(update={self._slot: result})


Stage = ContextStage | AnalysisStage


@dataclass(frozen=True)
class StageDescriptor:
    """Registration entry for a stage within a pipeline.

    Attributes:
        name: Unique name within a run; results and errors are keyed by it
        stage: The executable unit
        required: Whether a failure fails the whole run
        timeout_ms: Deadline in milliseconds (None = unbounded)
        overwrites: Enrichment slots this stage may replace once populated
    """

    name: str
    stage: Stage
    required: bool = False
    timeout_ms: int | None = None
    overwrites: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.name:
            raise PipelineDefinitionError("Stage name must not be empty")
        if self.timeout_ms is not None and self.timeout_ms <= 0:
            raise PipelineDefinitionError(
                f"Stage '{self.name}' timeout_ms must be positive, got {self.timeout_ms}"
            )
        unknown = set(self.overwrites) - set(ENRICHMENT_SLOTS)
        if unknown:
            raise PipelineDefinitionError(
                f"Stage '{self.name}' declares unknown slots: {sorted(unknown)}"
            )

    @property
    def timeout_seconds(self) -> float | None:
        return None if self.timeout_ms is None else self.timeout_ms / 1000


def ensure_unique_names(descriptors: Iterable[StageDescriptor]) -> None:
    """Raise DuplicateStageError if two descriptors share a name."""
    seen: set[str] = set()
    for descriptor in descriptors:
        if descriptor.name in seen:
            raise DuplicateStageError(descriptor.name)
        seen.add(descriptor.name)
