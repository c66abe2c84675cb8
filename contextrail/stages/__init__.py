"""Reference stage implementations.

Each analysis stage works in both scheduling modes: registered directly in
a concurrent pipeline, or wrapped in a SlotStage for the sequential one.

Usage:
    stages = create_analysis_stages(session_store, memory_store, social_store)
    definition = build_concurrent_pipeline(settings.pipeline, stages, "lightweight")
"""

from contextrail.config.models.pipeline import (
    MEMORY_ANALYSIS,
    MEMORY_CONTEXT,
    MESSAGE_ANALYSIS,
    PERSONALITY_CONTEXT,
    SESSION_ANALYSIS,
    SESSION_CONTEXT,
    SOCIAL_ANALYSIS,
    SOCIAL_CONTEXT,
)
from contextrail.memory.store import MemoryStore
from contextrail.pipeline.stage import AnalysisStage, ContextStage, SlotStage
from contextrail.pipeline.synthesis import Synthesizer
from contextrail.session.store import SessionStore
from contextrail.social.store import SocialStore
from contextrail.stages.memory import MemoryAnalysisStage
from contextrail.stages.message import MessageAnalysisStage, analyze_message
from contextrail.stages.personality import PersonalityContextStage
from contextrail.stages.session import SessionAnalysisStage, analyze_session
from contextrail.stages.social import SocialAnalysisStage


def create_analysis_stages(
    session_store: SessionStore,
    memory_store: MemoryStore,
    social_store: SocialStore,
) -> dict[str, AnalysisStage]:
    """Analysis stages keyed by their concurrent pipeline names."""
    return {
        MESSAGE_ANALYSIS: MessageAnalysisStage(),
        SESSION_ANALYSIS: SessionAnalysisStage(session_store),
        MEMORY_ANALYSIS: MemoryAnalysisStage(memory_store),
        SOCIAL_ANALYSIS: SocialAnalysisStage(social_store),
    }


def create_sequential_stages(
    session_store: SessionStore,
    memory_store: MemoryStore,
    social_store: SocialStore,
    synthesizer: Synthesizer | None = None,
) -> dict[str, ContextStage]:
    """Context stages keyed by their sequential pipeline names."""
    return {
        MESSAGE_ANALYSIS: SlotStage(MessageAnalysisStage(), "analysis"),
        SESSION_CONTEXT: SlotStage(SessionAnalysisStage(session_store), "session_state"),
        MEMORY_CONTEXT: SlotStage(MemoryAnalysisStage(memory_store), "memory_view"),
        SOCIAL_CONTEXT: SlotStage(SocialAnalysisStage(social_store), "social_view"),
        PERSONALITY_CONTEXT: PersonalityContextStage(synthesizer),
    }


__all__ = [
    "MemoryAnalysisStage",
    "MessageAnalysisStage",
    "PersonalityContextStage",
    "SessionAnalysisStage",
    "SocialAnalysisStage",
    "analyze_message",
    "analyze_session",
    "create_analysis_stages",
    "create_sequential_stages",
]
