"""Personality context: synthesize a profile from the slots filled so far."""

from contextrail.pipeline.models import Context, SubAnalysis
from contextrail.pipeline.stage import ContextStage
from contextrail.pipeline.synthesis import (
    ProfileSynthesizer,
    Synthesizer,
    synthesize_or_default,
)

# Slots read as synthesis input, in the order results are presented
INPUT_SLOTS = ("analysis", "session_state", "memory_view", "social_view")


class PersonalityContextStage(ContextStage):
    """Sequential counterpart of the concurrent synthesis step.

    Runs the synthesizer over whichever analysis slots are populated and
    stores the profile in derived_profile. A synthesizer failure does not
    fail the stage: DEFAULT_PROFILE is stored and a recoverable synthesis
    error is reported on the returned context.
    """

    def __init__(self, synthesizer: Synthesizer | None = None) -> None:
        self._synthesizer = synthesizer or ProfileSynthesizer()

    async def run(self, context: Context) -> Context:
        results: dict[str, SubAnalysis] = {}
        for slot in INPUT_SLOTS:
            value = getattr(context, slot)
            if value is not None:
                results[slot] = value

        profile, error = await synthesize_or_default(self._synthesizer, results, context)
        enriched = context.model_copy(update={"derived_profile": profile})
        if error is not None:
            enriched = enriched.with_errors(error)
        return enriched
