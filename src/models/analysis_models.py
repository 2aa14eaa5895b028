"""Models for derived content analytics: statistics, keywords, summary, images."""

from pydantic import BaseModel, Field


class ContentAnalysis(BaseModel):
    """Quantitative statistics computed from rendered text."""

    word_count: int = Field(..., ge=0)
    sentence_count: int = Field(..., ge=0)
    paragraph_count: int = Field(..., ge=0)
    reading_time_minutes: int = Field(..., ge=1)
    readability_score: int = Field(
        ...,
        ge=0,
        le=100,
        description="Inverse sentence-length heuristic, not Flesch-Kincaid",
    )
    avg_words_per_sentence: float = Field(..., ge=0.0)
    avg_sentences_per_paragraph: float = Field(..., ge=0.0)
    character_count: int = Field(..., ge=0)
    character_count_no_spaces: int = Field(..., ge=0)


class Keyword(BaseModel):
    """A ranked term with its occurrence count and share of all tokens."""

    term: str
    count: int = Field(..., ge=1)
    frequency: float = Field(..., ge=0.0, description="Percentage of all tokens")


class SummarySentence(BaseModel):
    """A selected summary sentence with its score."""

    text: str
    score: float
    position: int = Field(..., ge=0, description="Index in the candidate pool")


class Summary(BaseModel):
    """Extractive summary; sentences are in score order, not document order."""

    sentences: list[SummarySentence] = Field(default_factory=list)
    text: str = ""


class ImageRef(BaseModel):
    """An image found on the page, resolved to an absolute URL."""

    src: str = Field(..., pattern=r"^http")
    alt: str = ""
    title: str = ""
    width: int | None = None
    height: int | None = None
