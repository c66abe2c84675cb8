"""Base helpers for pipeline models."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp a score into [low, high]."""
    return max(low, min(high, value))


class FrozenModel(BaseModel):
    """Base for records shared between stages.

    Instances are immutable; derive changed copies with model_copy(update=...).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")
