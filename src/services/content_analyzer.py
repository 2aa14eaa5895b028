"""Quantitative statistics over rendered text."""

import math
import re
from decimal import ROUND_HALF_UP, Decimal

from src.constants import MIN_SENTENCE_CHARS, WORDS_PER_MINUTE
from src.models.analysis_models import ContentAnalysis

SENTENCE_DELIMITER_RE = re.compile(r"[.!?]+")
PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")
_WHITESPACE_RE = re.compile(r"\s+")


def round_half_up(value: float, places: int = 0) -> float:
    """Round with ties away from zero, unlike the built-in round()."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def split_sentences(text: str, min_chars: int = MIN_SENTENCE_CHARS) -> list[str]:
    """Split on runs of . ! ? and keep trimmed fragments longer than min_chars."""
    fragments = (s.strip() for s in SENTENCE_DELIMITER_RE.split(text))
    return [s for s in fragments if len(s) > min_chars]


def analyze_content(text: str) -> ContentAnalysis:
    """
    Compute word, sentence and paragraph statistics for rendered text.

    The readability score is ``100 - 1.5 * avg_words_per_sentence`` clamped to
    [0, 100]: an inverse sentence-length heuristic, not Flesch-Kincaid.
    Averages are 0.0 when there are no sentences or paragraphs.
    """
    text = text or ""
    words = text.split()
    sentences = split_sentences(text)
    paragraphs = [p for p in PARAGRAPH_BREAK_RE.split(text) if p.strip()]

    word_count = len(words)
    sentence_count = len(sentences)
    paragraph_count = len(paragraphs)

    avg_words = word_count / sentence_count if sentence_count else 0.0
    avg_sentences = sentence_count / paragraph_count if paragraph_count else 0.0
    readability = min(100.0, max(0.0, 100 - avg_words * 1.5))

    return ContentAnalysis(
        word_count=word_count,
        sentence_count=sentence_count,
        paragraph_count=paragraph_count,
        reading_time_minutes=max(1, math.ceil(word_count / WORDS_PER_MINUTE)),
        readability_score=int(round_half_up(readability)),
        avg_words_per_sentence=round_half_up(avg_words, 1),
        avg_sentences_per_paragraph=round_half_up(avg_sentences, 1),
        character_count=len(text),
        character_count_no_spaces=len(_WHITESPACE_RE.sub("", text)),
    )
