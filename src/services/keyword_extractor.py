"""Frequency-based keyword extraction."""

import re
from collections import Counter

from src.constants import DEFAULT_MAX_KEYWORDS, MIN_KEYWORD_LENGTH
from src.models.analysis_models import Keyword
from src.services.content_analyzer import round_half_up

STOP_WORDS = frozenset(
    {
        "the",
        "and",
        "for",
        "are",
        "but",
        "not",
        "you",
        "all",
        "that",
        "this",
        "with",
        "from",
        "have",
        "were",
        "been",
        "they",
        "their",
        "there",
        "which",
        "what",
        "when",
        "where",
        "will",
        "would",
        "could",
        "should",
        "about",
        "into",
        "than",
        "then",
        "them",
        "these",
        "those",
        "your",
        "also",
        "more",
        "some",
        "such",
        "only",
        "other",
        "very",
        "just",
    }
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def extract_keywords(text: str, max_keywords: int = DEFAULT_MAX_KEYWORDS) -> list[Keyword]:
    """
    Rank terms by occurrence count.

    Tokens are lower-cased and stripped to ``[a-z0-9]``; tokens of length
    ``MIN_KEYWORD_LENGTH`` or less and stop words are discarded. Ties keep
    first-occurrence order. ``frequency`` is the percentage of all tokens,
    counting the discarded ones, to two decimals.
    """
    if not text or max_keywords <= 0:
        return []

    tokens = [_NON_ALNUM_RE.sub("", t) for t in text.lower().split()]
    total = len(tokens)
    if total == 0:
        return []

    counts = Counter(
        t for t in tokens if len(t) > MIN_KEYWORD_LENGTH and t not in STOP_WORDS
    )
    # Counter preserves insertion order and sorted() is stable
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)

    return [
        Keyword(
            term=term,
            count=count,
            frequency=round_half_up(count / total * 10000) / 100,
        )
        for term, count in ranked[:max_keywords]
    ]
