"""Pipeline domain models.

Contains the Pydantic models shared by the engines:
- Context, the immutable record threaded through a run
- Sub-analysis results produced by enrichment stages
- The derived profile produced by synthesis
- Execution trace entries
"""

from contextrail.pipeline.models.analyses import (
    FALLBACK_CONFIDENCE,
    InteractionView,
    MemoryAnalysis,
    MemorySnippet,
    MessageAnalysis,
    RelationshipView,
    SessionAnalysis,
    SocialAnalysis,
    SubAnalysis,
)
from contextrail.pipeline.models.base import FrozenModel, clamp, utc_now
from contextrail.pipeline.models.context import ENRICHMENT_SLOTS, Context, ErrorEntry
from contextrail.pipeline.models.enums import (
    CommunicationStyle,
    ErrorKind,
    PipelineMode,
    StageOutcome,
)
from contextrail.pipeline.models.profile import DEFAULT_PROFILE, DerivedProfile
from contextrail.pipeline.models.trace import ExecutionTrace, TraceEntry

__all__ = [
    # Base
    "FrozenModel",
    "clamp",
    "utc_now",
    # Enums
    "CommunicationStyle",
    "ErrorKind",
    "PipelineMode",
    "StageOutcome",
    # Context
    "ENRICHMENT_SLOTS",
    "Context",
    "ErrorEntry",
    # Sub-analyses
    "FALLBACK_CONFIDENCE",
    "SubAnalysis",
    "MessageAnalysis",
    "SessionAnalysis",
    "MemoryAnalysis",
    "MemorySnippet",
    "SocialAnalysis",
    "RelationshipView",
    "InteractionView",
    # Profile
    "DEFAULT_PROFILE",
    "DerivedProfile",
    # Trace
    "ExecutionTrace",
    "TraceEntry",
]
