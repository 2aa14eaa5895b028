"""Extraction request and result models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.analysis_models import ContentAnalysis, ImageRef, Keyword, Summary

OutputFormat = Literal["text", "markdown", "json", "html"]
ExtractionMode = Literal["readability", "full", "selector"]

OUTPUT_FORMATS: tuple[str, ...] = ("text", "markdown", "json", "html")
EXTRACTION_MODES: tuple[str, ...] = ("readability", "full", "selector")


class ExtractionRequest(BaseModel):
    """
    A single extraction request, built from request parameters.

    A ``mode`` that is not one of the known mode names is treated as a
    CSS selector, so ``?mode=article.post`` works like
    ``?mode=selector&selector=article.post``.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1, description="Target URL as supplied")
    format: OutputFormat = Field(default="text", description="Output format")
    mode: ExtractionMode = Field(default="readability", description="Extraction mode")
    selector: str | None = Field(
        default=None, description="CSS selector for selector mode"
    )
    include_html: bool = Field(default=False, description="Include content HTML")
    include_keywords: bool = Field(default=False, description="Include keywords")
    include_summary: bool = Field(default=False, description="Include summary")
    max_length: int | None = Field(
        default=None, gt=0, description="Truncate rendered content to this length"
    )
    no_cache: bool = Field(default=False, description="Bypass cached results")

    @model_validator(mode="before")
    @classmethod
    def _custom_mode_is_selector(cls, data):
        if isinstance(data, dict):
            mode = data.get("mode")
            if isinstance(mode, str):
                mode = mode.strip()
                if not mode:
                    data = {**data, "mode": "readability"}
                elif mode.lower() in EXTRACTION_MODES:
                    data = {**data, "mode": mode.lower()}
                else:
                    data = {**data, "mode": "selector", "selector": mode}
        return data

    @model_validator(mode="after")
    def _selector_required(self):
        if self.mode == "selector" and not (self.selector and self.selector.strip()):
            raise ValueError("selector mode requires a selector")
        return self


class ExtractionResult(BaseModel):
    """Full result payload of one extraction; this is what gets cached."""

    url: str
    title: str | None = None
    byline: str | None = None
    excerpt: str | None = None
    site_name: str | None = None
    mode: ExtractionMode = "readability"
    selector: str | None = None
    text_content: str = ""
    markdown: str = ""
    html: str = ""
    analysis: ContentAnalysis
    keywords: list[Keyword] = Field(default_factory=list)
    summary: Summary = Field(default_factory=Summary)
    metadata: dict[str, str] = Field(default_factory=dict)
    images: list[ImageRef] = Field(default_factory=list)
    extracted_at: datetime
    processing_time_ms: float = Field(default=0.0, ge=0.0)
    cached: bool = False
