"""Configuration model exports.

    from contextrail.config.models import PipelineConfig, StageConfig
"""

from contextrail.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from contextrail.config.models.pipeline import (
    ConcurrentPipelineConfig,
    PipelineConfig,
    SequentialPipelineConfig,
    StageConfig,
)

__all__ = [
    # Observability
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    # Pipeline
    "ConcurrentPipelineConfig",
    "PipelineConfig",
    "SequentialPipelineConfig",
    "StageConfig",
]
