"""Position-weighted extractive summarization."""

from src.constants import (
    DEFAULT_SUMMARY_MAX_SENTENCES,
    SUMMARY_MAX_SENTENCE_CHARS,
    SUMMARY_MIN_SENTENCE_CHARS,
)
from src.models.analysis_models import Summary, SummarySentence
from src.services.content_analyzer import SENTENCE_DELIMITER_RE


def summarize(text: str, max_sentences: int = DEFAULT_SUMMARY_MAX_SENTENCES) -> Summary:
    """
    Pick the highest-scoring early sentences.

    Candidates are sentences whose trimmed length is strictly between the
    min and max sentence lengths. Only the first ``2 * max_sentences`` are
    scored, earlier ones higher, with a small bonus for length:
    ``(pool_size - index) * 0.5 + min(len / 100, 1)``.

    Sentences are returned in score order, not document order.
    """
    if not text or max_sentences <= 0:
        return Summary()

    candidates = [
        s
        for s in (part.strip() for part in SENTENCE_DELIMITER_RE.split(text))
        if SUMMARY_MIN_SENTENCE_CHARS < len(s) < SUMMARY_MAX_SENTENCE_CHARS
    ]
    if not candidates:
        return Summary()

    pool = candidates[: min(2 * max_sentences, len(candidates))]
    scored = [
        SummarySentence(
            text=sentence,
            score=(len(pool) - index) * 0.5 + min(len(sentence) / 100, 1.0),
            position=index,
        )
        for index, sentence in enumerate(pool)
    ]
    top = sorted(scored, key=lambda s: s.score, reverse=True)[:max_sentences]

    return Summary(sentences=top, text=". ".join(s.text for s in top) + ".")
