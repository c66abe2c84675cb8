"""Pipeline configuration models.

Stage tables are ordered: registration order in a sequential pipeline is
the order in which stages appear in the TOML table (or in the dict passed
to the model).

    [pipeline.sequential.stages.message-analysis]
    required = true

    [pipeline.concurrent.lightweight.stages.session-analysis]
    required = true
    timeout_ms = 3000
"""

from pydantic import BaseModel, Field, model_validator

# Stage names used by the reference configurations
MESSAGE_ANALYSIS = "message-analysis"
SESSION_CONTEXT = "session-context"
MEMORY_CONTEXT = "memory-context"
SOCIAL_CONTEXT = "social-context"
PERSONALITY_CONTEXT = "personality-context"
SESSION_ANALYSIS = "session-analysis"
MEMORY_ANALYSIS = "memory-analysis"
SOCIAL_ANALYSIS = "social-analysis"


class StageConfig(BaseModel):
    """Registration settings for one stage."""

    enabled: bool = Field(default=True, description="Include this stage in the pipeline")
    required: bool = Field(
        default=False,
        description="Whether a failure of this stage fails the whole run",
    )
    timeout_ms: int | None = Field(
        default=None,
        gt=0,
        description="Per-stage deadline in milliseconds (None = unbounded)",
    )


def _default_sequential_stages() -> dict[str, StageConfig]:
    return {
        MESSAGE_ANALYSIS: StageConfig(required=True),
        SESSION_CONTEXT: StageConfig(required=True),
        MEMORY_CONTEXT: StageConfig(),
        SOCIAL_CONTEXT: StageConfig(),
        PERSONALITY_CONTEXT: StageConfig(),
    }


def _concurrent_stages(
    message_ms: int,
    session_ms: int,
    memory_ms: int | None = None,
    social_ms: int | None = None,
) -> dict[str, StageConfig]:
    stages = {
        MESSAGE_ANALYSIS: StageConfig(required=True, timeout_ms=message_ms),
        SESSION_ANALYSIS: StageConfig(required=True, timeout_ms=session_ms),
    }
    if memory_ms is not None:
        stages[MEMORY_ANALYSIS] = StageConfig(timeout_ms=memory_ms)
    if social_ms is not None:
        stages[SOCIAL_ANALYSIS] = StageConfig(timeout_ms=social_ms)
    return stages


class SequentialPipelineConfig(BaseModel):
    """Sequential-dependent pipeline: each stage sees all prior enrichment."""

    stages: dict[str, StageConfig] = Field(
        default_factory=_default_sequential_stages,
        description="Ordered stage registrations",
    )


class ConcurrentPipelineConfig(BaseModel):
    """Parallel-then-synthesize pipeline."""

    stages: dict[str, StageConfig] = Field(
        default_factory=lambda: _concurrent_stages(10000, 5000, 8000, 6000),
        description="Independent stage registrations",
    )
    synthesis_enabled: bool = Field(
        default=True,
        description="Run the synthesizer after the fan-in barrier",
    )
    synthesize_on_failure: bool = Field(
        default=False,
        description="Still synthesize when a required stage failed",
    )


def _default_presets() -> dict[str, ConcurrentPipelineConfig]:
    return {
        "default": ConcurrentPipelineConfig(),
        "lightweight": ConcurrentPipelineConfig(stages=_concurrent_stages(5000, 3000)),
        "development": ConcurrentPipelineConfig(
            stages=_concurrent_stages(15000, 10000, 12000, 10000)
        ),
        "production": ConcurrentPipelineConfig(
            stages=_concurrent_stages(7000, 4000, 6000, 5000)
        ),
    }


class PipelineConfig(BaseModel):
    """Pipeline configuration for both scheduling modes."""

    sequential: SequentialPipelineConfig = Field(
        default_factory=SequentialPipelineConfig,
        description="Sequential pipeline",
    )
    concurrent: dict[str, ConcurrentPipelineConfig] = Field(
        default_factory=_default_presets,
        description="Concurrent pipeline presets by name",
    )
    default_preset: str = Field(
        default="default",
        description="Concurrent preset used when none is requested",
    )

    @model_validator(mode="after")
    def check_default_preset(self) -> "PipelineConfig":
        """Ensure the default preset exists."""
        if self.default_preset not in self.concurrent:
            raise ValueError(
                f"default_preset '{self.default_preset}' is not one of "
                f"{sorted(self.concurrent)}"
            )
        return self
