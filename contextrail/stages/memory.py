"""Memory analysis: recall stored memories relevant to the message."""

from collections import Counter
from typing import ClassVar

from contextrail.memory.models import Memory, MemoryImportance
from contextrail.memory.store import MemoryStore
from contextrail.observability.logging import get_logger
from contextrail.pipeline.models import (
    Context,
    MemoryAnalysis,
    MemorySnippet,
    SubAnalysis,
)
from contextrail.pipeline.stage import AnalysisStage
from contextrail.stages.text import KNOWN_NAMES, has_term, matching, words

logger = get_logger(__name__)

STOP_WORDS = frozenset(
    {
        "this", "that", "with", "have", "will", "from", "they", "know", "want",
        "been", "good", "much", "some", "time", "very", "when", "come", "here",
        "just", "like", "long", "make", "many", "over", "such", "take", "than",
        "them", "well", "were",
    }
)  # fmt: skip
DOMAIN_TERMS = (
    "personality",
    "consciousness",
    "railroad",
    "analysis",
    "architecture",
    "implementation",
    "algorithm",
    "optimization",
    "design",
    "system",
)
MESSAGE_TERM_LIMIT = 8
AUXILIARY_TERM_LIMIT = 3
RECENT_WINDOW = 20


def _content_terms(text: str, limit: int) -> list[str]:
    terms = [word for word in words(text) if len(word) > 3 and word not in STOP_WORDS]
    return terms[:limit]


def extract_search_terms(
    message: str,
    auxiliary_text: str | None = None,
    entities: list[str] | None = None,
) -> list[str]:
    """Build deduplicated recall terms, most specific first."""
    lowered = message.lower()
    terms = _content_terms(message, MESSAGE_TERM_LIMIT)
    if auxiliary_text:
        terms.extend(_content_terms(auxiliary_text, AUXILIARY_TERM_LIMIT))
    terms.extend(matching(lowered, DOMAIN_TERMS))
    terms.extend(matching(lowered, KNOWN_NAMES))
    if entities:
        terms.extend(entity.lower() for entity in entities)
    return list(dict.fromkeys(terms))


def score_relevance(memory: Memory, search_terms: list[str]) -> float:
    """Relevance of a memory to the search terms, in [0, 1]."""
    content = memory.content.lower()
    tags = [tag.lower() for tag in memory.tags]
    score = 0.0
    for term in search_terms:
        if has_term(content, term):
            score += 0.3
        if any(term in tag for tag in tags):
            score += 0.4

    # Importance and popularity only boost memories that matched something
    if score > 0:
        if memory.importance == MemoryImportance.HIGH:
            score += 0.2
        elif memory.importance == MemoryImportance.CRITICAL:
            score += 0.3
        if memory.access_count > 2:
            score += 0.1
    return min(1.0, score)


def memory_confidence(snippets: list[MemorySnippet], search_terms: list[str]) -> float:
    confidence = 0.5
    if snippets:
        confidence += min(0.3, len(snippets) * 0.1)
        average = sum(s.relevance_score for s in snippets) / len(snippets)
        confidence += average * 0.2
    if len(search_terms) > 3:
        confidence += 0.1
    return min(0.95, max(0.1, confidence))


def topic_patterns(
    recent: list[Memory],
    search_terms: list[str],
) -> tuple[list[str], list[str], list[str]]:
    """Return (frequent_topics, learning_areas, recent_trends)."""
    tag_counts = Counter(tag for memory in recent for tag in memory.tags)
    frequent = [tag for tag, _ in tag_counts.most_common(5)]

    important = (MemoryImportance.HIGH, MemoryImportance.CRITICAL)
    learning_counts = Counter(
        tag for memory in recent if memory.importance in important for tag in memory.tags
    )
    learning = [tag for tag, _ in learning_counts.most_common(3)]

    trends = [
        term
        for term in search_terms
        if any(term in topic for topic in frequent) or any(term in area for area in learning)
    ]
    return frequent, learning, trends[:3]


class MemoryAnalysisStage(AnalysisStage):
    """Store-backed memory recall.

    In sequential mode, entities found by the message analysis are added
    to the search terms.
    """

    result_type: ClassVar[type[SubAnalysis]] = MemoryAnalysis

    def __init__(self, store: MemoryStore, limit: int = 5) -> None:
        self._store = store
        self._limit = limit

    async def analyze(self, context: Context) -> MemoryAnalysis:
        entities = None
        if context.analysis is not None and not context.analysis.is_fallback:
            entities = context.analysis.entities_mentioned

        search_terms = extract_search_terms(context.message, context.auxiliary_text, entities)

        candidates = await self._store.list_candidates(limit=self._limit * 2)
        scored = [
            MemorySnippet(
                key=memory.key,
                content=memory.content,
                relevance_score=score_relevance(memory, search_terms),
                tags=memory.tags,
                access_count=memory.access_count,
            )
            for memory in candidates
        ]
        relevant = sorted(
            (snippet for snippet in scored if snippet.relevance_score > 0),
            key=lambda s: s.relevance_score,
            reverse=True,
        )[: self._limit]

        recent = await self._store.list_recent(limit=RECENT_WINDOW)
        frequent, learning, trends = topic_patterns(recent, search_terms)

        logger.debug(
            "memories_recalled",
            candidates=len(candidates),
            relevant=len(relevant),
            term_count=len(search_terms),
        )

        return MemoryAnalysis(
            confidence=memory_confidence(relevant, search_terms),
            relevant_memories=relevant,
            total_memories=await self._store.count(),
            search_terms=search_terms,
            frequent_topics=frequent,
            learning_areas=learning,
            recent_trends=trends,
        )
