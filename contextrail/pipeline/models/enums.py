"""Enums for the pipeline domain."""

from enum import Enum


class PipelineMode(str, Enum):
    """Scheduling mode of a pipeline run."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class StageOutcome(str, Enum):
    """Outcome of a single stage attempt.

    - SUCCESS: Stage returned a well-formed result
    - FAILED: Stage raised or returned something unusable
    - TIMEOUT: Stage missed its deadline (treated as FAILED for merging)
    """

    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"


class ErrorKind(str, Enum):
    """Category of a recorded run error."""

    FAILURE = "failure"
    TIMEOUT = "timeout"
    SYNTHESIS = "synthesis"


class CommunicationStyle(str, Enum):
    """Discrete communication style of a derived profile.

    ADAPTIVE is what synthesis picks when no signal is available;
    BALANCED is reserved for the default profile used when synthesis fails.
    """

    ADAPTIVE = "adaptive"
    BALANCED = "balanced"
    PERSONALIZED = "personalized"
    EDUCATIONAL = "educational"
    SUPPORTIVE = "supportive"
    TECHNICAL = "technical"
    ENTHUSIASTIC = "enthusiastic"
    SOCIAL = "social"
    FRIENDLY = "friendly"
    DIRECT = "direct"
    COLLABORATIVE = "collaborative"
    CASUAL = "casual"
