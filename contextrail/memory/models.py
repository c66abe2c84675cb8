"""Memory domain models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from contextrail.pipeline.models import utc_now


class MemoryImportance(str, Enum):
    """How much weight a stored memory carries during recall."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Memory(BaseModel):
    """A stored memory that recall can surface."""

    key: str = Field(..., description="Unique key")
    content: str = Field(..., description="Memory text")
    tags: list[str] = Field(default_factory=list, description="Topic tags")
    importance: MemoryImportance = Field(default=MemoryImportance.MEDIUM)
    access_count: int = Field(default=0, ge=0, description="Times recalled")
    stored_at: datetime = Field(default_factory=utc_now, description="When stored")
