"""Derived behavioral profile produced by synthesis."""

from pydantic import Field

from contextrail.pipeline.models.base import FrozenModel
from contextrail.pipeline.models.enums import CommunicationStyle


class DerivedProfile(FrozenModel):
    """Synthesized behavioral profile for one run.

    All scores are bounded to [0, 1]. A profile is either fully synthesized
    or the documented DEFAULT_PROFILE; it is never partially populated.
    """

    communication_style: CommunicationStyle
    confidence_level: float = Field(..., ge=0.0, le=1.0)
    adaptation_level: float = Field(..., ge=0.0, le=1.0)
    synthesis_confidence: float = Field(..., ge=0.0, le=1.0)
    triggers: list[str] = Field(default_factory=list)
    reasoning: list[str] = Field(default_factory=list)
    signal_count: int = Field(default=0, ge=0, description="Non-fallback inputs used")
    is_fallback: bool = False


DEFAULT_PROFILE = DerivedProfile(
    communication_style=CommunicationStyle.BALANCED,
    confidence_level=0.8,
    adaptation_level=0.5,
    synthesis_confidence=0.2,
    triggers=["fallback_mode"],
    reasoning=["Synthesis failed - using default profile"],
    is_fallback=True,
)
