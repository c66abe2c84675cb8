"""Named pipeline configurations as data.

A PipelineDefinition is a scheduling mode plus an ordered tuple of stage
descriptors. Definitions are immutable; add_stage, reorder and without
return new definitions so that presets can be derived from one another.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from contextrail.config.models.pipeline import (
    ConcurrentPipelineConfig,
    PipelineConfig,
    SequentialPipelineConfig,
    StageConfig,
)
from contextrail.pipeline.exceptions import (
    PipelineDefinitionError,
    UnknownPresetError,
    UnknownStageError,
)
from contextrail.pipeline.models import PipelineMode
from contextrail.pipeline.stage import (
    AnalysisStage,
    ContextStage,
    Stage,
    StageDescriptor,
    ensure_unique_names,
)


@dataclass(frozen=True)
class PipelineDefinition:
    """An ordered, named set of stage registrations.

    Attributes:
        name: Pipeline or preset name, used in logs and metrics
        mode: How the stages are scheduled
        stages: Stage descriptors in registration order
        synthesis_enabled: Run the synthesizer after a concurrent run
        synthesize_on_failure: Synthesize even when a required stage failed
    """

    name: str
    mode: PipelineMode
    stages: tuple[StageDescriptor, ...] = field(default_factory=tuple)
    synthesis_enabled: bool = True
    synthesize_on_failure: bool = False

    def __post_init__(self) -> None:
        ensure_unique_names(self.stages)
        expected = ContextStage if self.mode == PipelineMode.SEQUENTIAL else AnalysisStage
        for descriptor in self.stages:
            if not isinstance(descriptor.stage, expected):
                raise PipelineDefinitionError(
                    f"Stage '{descriptor.name}' cannot run in {self.mode.value} mode"
                )

    @property
    def stage_names(self) -> list[str]:
        return [descriptor.name for descriptor in self.stages]

    def get(self, name: str) -> StageDescriptor:
        """Look up a descriptor by name.

        Raises:
            UnknownStageError: If no stage has that name
        """
        for descriptor in self.stages:
            if descriptor.name == name:
                return descriptor
        raise UnknownStageError(name)

    def add_stage(
        self,
        name: str,
        stage: Stage,
        required: bool = False,
        timeout_ms: int | None = None,
        overwrites: Iterable[str] = (),
    ) -> "PipelineDefinition":
        """Return a new definition with a stage appended.

        Raises:
            DuplicateStageError: If the name is already registered
        """
        descriptor = StageDescriptor(
            name=name,
            stage=stage,
            required=required,
            timeout_ms=timeout_ms,
            overwrites=frozenset(overwrites),
        )
        return replace(self, stages=(*self.stages, descriptor))

    def reorder(self, names: Iterable[str]) -> "PipelineDefinition":
        """Return a new definition with stages in the given order.

        Stages not named keep their relative order after the named ones.

        Raises:
            UnknownStageError: If a name is not registered
        """
        ordered = [self.get(name) for name in names]
        picked = {descriptor.name for descriptor in ordered}
        rest = [descriptor for descriptor in self.stages if descriptor.name not in picked]
        return replace(self, stages=(*ordered, *rest))

    def without(self, names: Iterable[str]) -> "PipelineDefinition":
        """Return a new definition with the named stages removed.

        Raises:
            UnknownStageError: If a name is not registered
        """
        dropped = set(names)
        for name in dropped:
            self.get(name)
        return replace(
            self,
            stages=tuple(d for d in self.stages if d.name not in dropped),
        )


def _descriptors(
    stage_configs: Mapping[str, StageConfig],
    implementations: Mapping[str, Stage],
) -> tuple[StageDescriptor, ...]:
    descriptors = []
    for name, stage_config in stage_configs.items():
        if not stage_config.enabled:
            continue
        if name not in implementations:
            raise UnknownStageError(name)
        descriptors.append(
            StageDescriptor(
                name=name,
                stage=implementations[name],
                required=stage_config.required,
                timeout_ms=stage_config.timeout_ms,
            )
        )
    return tuple(descriptors)


def build_sequential_pipeline(
    config: SequentialPipelineConfig,
    implementations: Mapping[str, Stage],
    name: str = "sequential",
) -> PipelineDefinition:
    """Build the sequential pipeline from configuration.

    Disabled stages are omitted.

    Raises:
        UnknownStageError: If an enabled stage has no implementation
    """
    return PipelineDefinition(
        name=name,
        mode=PipelineMode.SEQUENTIAL,
        stages=_descriptors(config.stages, implementations),
    )


def build_concurrent_pipeline(
    config: PipelineConfig,
    implementations: Mapping[str, Stage],
    preset: str | None = None,
) -> PipelineDefinition:
    """Build a concurrent preset from configuration.

    Args:
        config: Pipeline configuration holding the presets
        implementations: Stage implementations by name
        preset: Preset name (None = config.default_preset)

    Raises:
        UnknownPresetError: If the preset is not configured
        UnknownStageError: If an enabled stage has no implementation
    """
    preset_name = preset or config.default_preset
    preset_config: ConcurrentPipelineConfig | None = config.concurrent.get(preset_name)
    if preset_config is None:
        raise UnknownPresetError(preset_name)

    return PipelineDefinition(
        name=preset_name,
        mode=PipelineMode.CONCURRENT,
        stages=_descriptors(preset_config.stages, implementations),
        synthesis_enabled=preset_config.synthesis_enabled,
        synthesize_on_failure=preset_config.synthesize_on_failure,
    )
