"""Test factories for contextrail models and stages."""

from tests.factories.pipeline import (
    AnalysisFactory,
    ContextFactory,
    RaisingAnalysisStage,
    RaisingContextStage,
    SlotWriterStage,
    StaticAnalysisStage,
    TypedAnalysisStage,
    descriptor,
)

__all__ = [
    "AnalysisFactory",
    "ContextFactory",
    "RaisingAnalysisStage",
    "RaisingContextStage",
    "SlotWriterStage",
    "StaticAnalysisStage",
    "TypedAnalysisStage",
    "descriptor",
]
