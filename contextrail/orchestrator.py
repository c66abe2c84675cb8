"""ContextOrchestrator: the caller-facing entry point for pipeline runs.

The orchestrator resolves the session once per run, drives the engine for
the requested scheduling mode and, for concurrent runs, synthesizes the
merged results into a derived profile. Whatever happens inside the run,
the caller receives a well-formed PipelineResult; only malformed pipeline
definitions raise.
"""

import time
from collections.abc import Mapping, Sequence

from structlog.contextvars import bound_contextvars

from contextrail.config.models.pipeline import PipelineConfig
from contextrail.config.settings import Settings
from contextrail.memory.store import MemoryStore
from contextrail.memory.stores import InMemoryMemoryStore
from contextrail.observability.logging import get_logger, setup_logging_from_config
from contextrail.observability.metrics import (
    SYNTHESIS_CONFIDENCE,
    SYNTHESIS_FALLBACKS,
    observe_run,
    observe_stage,
)
from contextrail.pipeline.concurrent import ConcurrentEngine
from contextrail.pipeline.definitions import (
    PipelineDefinition,
    build_concurrent_pipeline,
    build_sequential_pipeline,
)
from contextrail.pipeline.models import (
    Context,
    DerivedProfile,
    ErrorEntry,
    ExecutionTrace,
    PipelineMode,
    StageOutcome,
    SubAnalysis,
    TraceEntry,
    utc_now,
)
from contextrail.pipeline.result import PipelineResult
from contextrail.pipeline.sequential import SequentialEngine
from contextrail.pipeline.stage import StageDescriptor
from contextrail.pipeline.synthesis import (
    SYNTHESIS_STAGE,
    ProfileSynthesizer,
    Synthesizer,
    synthesize_or_default,
)
from contextrail.session.store import SessionStore
from contextrail.session.stores import InMemorySessionStore
from contextrail.social.store import SocialStore
from contextrail.social.stores import InMemorySocialStore
from contextrail.stages import create_analysis_stages, create_sequential_stages

logger = get_logger(__name__)

StageList = Sequence[StageDescriptor] | PipelineDefinition


class ContextOrchestrator:
    """Run sequential and concurrent enrichment pipelines.

    Stores default to in-memory implementations, which suit tests and
    development. The pipeline configuration supplies the named presets
    used by process().
    """

    def __init__(
        self,
        session_store: SessionStore | None = None,
        memory_store: MemoryStore | None = None,
        social_store: SocialStore | None = None,
        synthesizer: Synthesizer | None = None,
        config: PipelineConfig | None = None,
        record_metrics: bool = True,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            session_store: Store used to resolve the session once per run
            memory_store: Store backing the memory analysis stage
            social_store: Store backing the social analysis stage
            synthesizer: Profile synthesizer (default: ProfileSynthesizer)
            config: Pipeline configuration (default: model defaults)
            record_metrics: Whether to record Prometheus metrics
        """
        self._session_store = session_store or InMemorySessionStore()
        self._memory_store = memory_store or InMemoryMemoryStore()
        self._social_store = social_store or InMemorySocialStore()
        self._synthesizer = synthesizer or ProfileSynthesizer()
        self._config = config or PipelineConfig()
        self._record_metrics = record_metrics

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        configure_logging: bool = True,
        **kwargs,
    ) -> "ContextOrchestrator":
        """Create an orchestrator configured from application settings.

        Unless configure_logging is False, structlog is configured from
        the [observability.logging] table (with the debug flag applied).
        Hosts that set up logging themselves should pass False.
        """
        if configure_logging:
            setup_logging_from_config(settings.effective_logging)
        return cls(
            config=settings.pipeline,
            record_metrics=settings.observability.metrics.enabled,
            **kwargs,
        )

    @property
    def config(self) -> PipelineConfig:
        return self._config

    async def build_context(
        self,
        message: str,
        auxiliary_text: str | None = None,
        session_id: str | None = None,
        user_id: str = "system",
    ) -> Context:
        """Create the initial Context for a run.

        The session is resolved here, once, and its id is carried on the
        Context for every stage to read.
        """
        session = await self._session_store.resolve(session_id, user_id=user_id)
        return Context(
            message=message,
            auxiliary_text=auxiliary_text,
            session_id=session.session_id,
            user_id=user_id,
        )

    def sequential_pipeline(self) -> PipelineDefinition:
        """Configured sequential pipeline using the reference stages."""
        stages = create_sequential_stages(
            self._session_store,
            self._memory_store,
            self._social_store,
            self._synthesizer,
        )
        return build_sequential_pipeline(self._config.sequential, stages)

    def concurrent_pipeline(self, preset: str | None = None) -> PipelineDefinition:
        """Configured concurrent preset using the reference stages.

        Raises:
            UnknownPresetError: If the preset is not configured
        """
        stages = create_analysis_stages(
            self._session_store,
            self._memory_store,
            self._social_store,
        )
        return build_concurrent_pipeline(self._config, stages, preset)

    async def process(
        self,
        message: str,
        auxiliary_text: str | None = None,
        session_id: str | None = None,
        user_id: str = "system",
        mode: PipelineMode = PipelineMode.CONCURRENT,
        preset: str | None = None,
    ) -> PipelineResult:
        """Enrich a message end to end with the configured pipelines.

        Args:
            message: Input text
            auxiliary_text: Optional caller-supplied context
            session_id: Existing session to continue (None = new session)
            user_id: User the run is for
            mode: Scheduling mode
            preset: Concurrent preset name (None = configured default)

        Returns:
            PipelineResult for the run
        """
        if mode == PipelineMode.SEQUENTIAL:
            definition = self.sequential_pipeline()
        else:
            definition = self.concurrent_pipeline(preset)

        context = await self.build_context(message, auxiliary_text, session_id, user_id)
        return await self.run(definition, context)

    async def run(self, definition: PipelineDefinition, context: Context) -> PipelineResult:
        """Run a pipeline definition in its own scheduling mode."""
        if definition.mode == PipelineMode.SEQUENTIAL:
            return await self.run_sequential(context, definition)
        return await self.run_concurrent(context, definition)

    async def run_sequential(
        self,
        context: Context,
        stages: StageList,
        name: str = "sequential",
    ) -> PipelineResult:
        """Run stages one after another on an accumulating context.

        Raises:
            PipelineDefinitionError: If the stage list is malformed
        """
        if isinstance(stages, PipelineDefinition):
            name = stages.name
            stages = stages.stages

        with bound_contextvars(session_id=context.session_id, pipeline=name):
            engine = SequentialEngine(pipeline_name=name, record_metrics=self._record_metrics)
            outcome = await engine.run(context, stages)

            if self._record_metrics:
                observe_run(
                    name,
                    PipelineMode.SEQUENTIAL.value,
                    outcome.success,
                    outcome.total_time_ms / 1000,
                )

            return PipelineResult(
                pipeline=name,
                mode=PipelineMode.SEQUENTIAL,
                context=outcome.context,
                trace=outcome.trace,
                success=outcome.success,
                total_time_ms=outcome.total_time_ms,
            )

    async def run_concurrent(
        self,
        context: Context,
        stages: StageList,
        name: str = "concurrent",
        synthesis_enabled: bool = True,
        synthesize_on_failure: bool = False,
    ) -> PipelineResult:
        """Fan out all stages, wait for the barrier, then synthesize.

        When a PipelineDefinition is passed, its name and synthesis flags
        take precedence over the keyword arguments. Synthesis is skipped
        after a required-stage failure unless synthesize_on_failure is set.

        Raises:
            PipelineDefinitionError: If the stage list is malformed
        """
        if isinstance(stages, PipelineDefinition):
            name = stages.name
            synthesis_enabled = stages.synthesis_enabled
            synthesize_on_failure = stages.synthesize_on_failure
            stages = stages.stages

        run_start = time.perf_counter()
        with bound_contextvars(session_id=context.session_id, pipeline=name):
            engine = ConcurrentEngine(pipeline_name=name, record_metrics=self._record_metrics)
            outcome = await engine.run(context, stages)

            trace = ExecutionTrace(entries=list(outcome.trace.entries))
            operations = [*context.operations_log, *outcome.completed]
            errors = [*context.errors, *outcome.errors]
            profile = None

            if synthesis_enabled and (outcome.success or synthesize_on_failure):
                profile, error = await self.synthesize(outcome.results, context, name, trace)
                if error is None:
                    operations.append(SYNTHESIS_STAGE)
                else:
                    errors.append(error)
            elif synthesis_enabled:
                logger.info("synthesis_skipped", reason="required_stage_failed")

            final = context.model_copy(
                update={
                    "sub_analyses": dict(outcome.results),
                    "derived_profile": profile,
                    "operations_log": tuple(operations),
                    "errors": tuple(errors),
                }
            )
            total_time_ms = (time.perf_counter() - run_start) * 1000

            if self._record_metrics:
                observe_run(
                    name,
                    PipelineMode.CONCURRENT.value,
                    outcome.success,
                    total_time_ms / 1000,
                )

            return PipelineResult(
                pipeline=name,
                mode=PipelineMode.CONCURRENT,
                context=final,
                trace=trace,
                success=outcome.success,
                total_time_ms=total_time_ms,
            )

    async def synthesize(
        self,
        results: Mapping[str, SubAnalysis],
        context: Context,
        pipeline: str = "concurrent",
        trace: ExecutionTrace | None = None,
    ) -> tuple[DerivedProfile, ErrorEntry | None]:
        """Run the synthesizer, substituting DEFAULT_PROFILE on failure.

        Never raises for a synthesizer failure; the failure is returned as
        a recoverable error entry instead, and recorded in the trace and
        metrics.

        Returns:
            Tuple of (profile, error entry or None)
        """
        started_at = utc_now()
        step_start = time.perf_counter()
        profile, error = await synthesize_or_default(self._synthesizer, results, context)

        elapsed = time.perf_counter() - step_start
        outcome = StageOutcome.SUCCESS if error is None else StageOutcome.FAILED
        if trace is not None:
            trace.record(
                TraceEntry(
                    stage=SYNTHESIS_STAGE,
                    started_at=started_at,
                    ended_at=utc_now(),
                    duration_ms=elapsed * 1000,
                    outcome=outcome,
                    error=None if error is None else error.message,
                )
            )

        if self._record_metrics:
            observe_stage(pipeline, SYNTHESIS_STAGE, outcome.value, elapsed)
            if error is not None:
                SYNTHESIS_FALLBACKS.labels(pipeline=pipeline).inc()
            SYNTHESIS_CONFIDENCE.labels(pipeline=pipeline).observe(profile.synthesis_confidence)

        logger.debug(
            "synthesis_completed",
            style=profile.communication_style.value,
            synthesis_confidence=round(profile.synthesis_confidence, 3),
            fallback=error is not None,
        )
        return profile, error
