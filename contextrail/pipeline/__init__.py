"""Context enrichment pipeline.

Two scheduling modes share one Context model:
- SequentialEngine: stages run in order, each seeing prior enrichment
- ConcurrentEngine: stages run in parallel on a frozen snapshot, their
  results merged by name and synthesized into a DerivedProfile

ContextOrchestrator (contextrail.orchestrator) is the caller-facing entry
point built on these engines.
"""

from contextrail.pipeline.concurrent import ConcurrentEngine
from contextrail.pipeline.definitions import (
    PipelineDefinition,
    build_concurrent_pipeline,
    build_sequential_pipeline,
)
from contextrail.pipeline.exceptions import (
    ContextRailError,
    DuplicateStageError,
    InvalidStageOutputError,
    PipelineDefinitionError,
    SlotOverwriteError,
    StageExecutionError,
    StageTimeoutError,
    SynthesisError,
    UnknownPresetError,
    UnknownStageError,
)
from contextrail.pipeline.result import ConcurrentResult, PipelineResult, SequentialResult
from contextrail.pipeline.sequential import SequentialEngine
from contextrail.pipeline.stage import (
    AnalysisStage,
    ContextStage,
    FunctionAnalysisStage,
    FunctionStage,
    SlotStage,
    Stage,
    StageDescriptor,
)
from contextrail.pipeline.synthesis import ProfileSynthesizer, Synthesizer

__all__ = [
    # Engines
    "ConcurrentEngine",
    "SequentialEngine",
    # Stages
    "AnalysisStage",
    "ContextStage",
    "FunctionAnalysisStage",
    "FunctionStage",
    "SlotStage",
    "Stage",
    "StageDescriptor",
    # Definitions
    "PipelineDefinition",
    "build_concurrent_pipeline",
    "build_sequential_pipeline",
    # Results
    "ConcurrentResult",
    "PipelineResult",
    "SequentialResult",
    # Synthesis
    "ProfileSynthesizer",
    "Synthesizer",
    # Exceptions
    "ContextRailError",
    "DuplicateStageError",
    "InvalidStageOutputError",
    "PipelineDefinitionError",
    "SlotOverwriteError",
    "StageExecutionError",
    "StageTimeoutError",
    "SynthesisError",
    "UnknownPresetError",
    "UnknownStageError",
]
