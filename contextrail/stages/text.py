"""Keyword helpers shared by the heuristic stages."""

import re
from collections.abc import Iterable
from functools import lru_cache

# Names the social and memory stages treat as known entities
KNOWN_NAMES = ("andy", "echo", "claude")


@lru_cache(maxsize=512)
def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(term)}\b")


def has_term(text: str, term: str) -> bool:
    """Whole-word (or whole-phrase) match against lowercase text."""
    return _term_pattern(term).search(text) is not None


def has_any(text: str, terms: Iterable[str]) -> bool:
    return any(has_term(text, term) for term in terms)


def matching(text: str, terms: Iterable[str]) -> list[str]:
    """Terms present in text, in the order given."""
    return [term for term in terms if has_term(text, term)]


def words(text: str) -> list[str]:
    """Lowercase words with surrounding punctuation stripped."""
    return re.findall(r"[a-z0-9][a-z0-9'_-]*", text.lower())
