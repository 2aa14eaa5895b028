"""Tests for Pydantic models."""

from datetime import datetime, timezone

import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError

from src.models.analysis_models import ContentAnalysis, ImageRef, Keyword, Summary
from src.models.extraction_models import (
    EXTRACTION_MODES,
    OUTPUT_FORMATS,
    ExtractionRequest,
    ExtractionResult,
)

URL = "https://example.com/"


class TestExtractionRequest:
    """Test request parsing and validation."""

    def test_defaults(self):
        request = ExtractionRequest(url=URL)

        assert request.format == "text"
        assert request.mode == "readability"
        assert request.selector is None
        assert request.include_html is False
        assert request.include_keywords is False
        assert request.include_summary is False
        assert request.max_length is None
        assert request.no_cache is False

    @pytest.mark.parametrize("fmt", OUTPUT_FORMATS)
    def test_known_formats(self, fmt):
        assert ExtractionRequest(url=URL, format=fmt).format == fmt

    def test_unknown_format_is_rejected(self):
        with pytest.raises(ValidationError):
            ExtractionRequest(url=URL, format="pdf")

    @pytest.mark.parametrize("mode", EXTRACTION_MODES[:2])
    def test_named_modes(self, mode):
        assert ExtractionRequest(url=URL, mode=mode).mode == mode

    def test_mode_names_are_case_insensitive(self):
        assert ExtractionRequest(url=URL, mode=" FULL ").mode == "full"

    def test_empty_mode_means_readability(self):
        assert ExtractionRequest(url=URL, mode="").mode == "readability"

    def test_custom_mode_becomes_selector(self):
        request = ExtractionRequest(url=URL, mode="article.post-body")

        assert request.mode == "selector"
        assert request.selector == "article.post-body"

    def test_selector_mode_requires_selector(self):
        with pytest.raises(ValidationError) as exc_info:
            ExtractionRequest(url=URL, mode="selector")
        assert "selector mode requires a selector" in str(exc_info.value)

    def test_blank_selector_is_rejected(self):
        with pytest.raises(ValidationError):
            ExtractionRequest(url=URL, mode="selector", selector="   ")

    @pytest.mark.parametrize("value", [0, -5])
    def test_max_length_must_be_positive(self, value):
        with pytest.raises(ValidationError):
            ExtractionRequest(url=URL, max_length=value)

    def test_url_is_required(self):
        with pytest.raises(ValidationError):
            ExtractionRequest(url="")

    def test_request_is_frozen(self):
        request = ExtractionRequest(url=URL)
        with pytest.raises(ValidationError):
            request.format = "json"

    @given(
        selector=st.text(min_size=1, max_size=50).filter(
            lambda s: s.strip() and s.strip().lower() != "selector"
        )
    )
    def test_any_unknown_mode_is_a_selector(self, selector: str):
        """Property: a non-empty mode that is not a mode name is used as the selector."""
        request = ExtractionRequest(url=URL, mode=selector)
        if selector.strip().lower() in EXTRACTION_MODES:
            assert request.mode == selector.strip().lower()
        else:
            assert request.mode == "selector"
            assert request.selector == selector.strip()


class TestAnalysisModels:
    """Test analytics model constraints."""

    def test_readability_bounds(self):
        fields = dict(
            word_count=1,
            sentence_count=1,
            paragraph_count=1,
            reading_time_minutes=1,
            avg_words_per_sentence=1.0,
            avg_sentences_per_paragraph=1.0,
            character_count=1,
            character_count_no_spaces=1,
        )
        assert ContentAnalysis(readability_score=100, **fields).readability_score == 100
        with pytest.raises(ValidationError):
            ContentAnalysis(readability_score=101, **fields)

    def test_keyword_count_is_positive(self):
        with pytest.raises(ValidationError):
            Keyword(term="tide", count=0, frequency=0.0)

    def test_image_src_must_be_http(self):
        assert ImageRef(src="https://example.com/a.png").alt == ""
        with pytest.raises(ValidationError):
            ImageRef(src="data:image/png;base64,AAAA")

    def test_empty_summary(self):
        summary = Summary()
        assert summary.sentences == []
        assert summary.text == ""


class TestExtractionResult:
    """Test the cached result model."""

    def test_json_round_trip(self, sample_result):
        payload = sample_result.model_dump(mode="json")
        restored = ExtractionResult.model_validate(payload)

        assert restored == sample_result
        assert restored.extracted_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_cached_defaults_to_false(self, sample_result):
        assert sample_result.cached is False
        assert sample_result.model_copy(update={"cached": True}).cached is True
