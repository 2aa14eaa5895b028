"""The extraction pipeline.

validate -> cache lookup -> fetch -> parse -> harvest metadata/images ->
remove noise -> detect content root -> render text and Markdown ->
analyze, keywords, summary -> cache write.

Every failure leaves this module as a ReaderError; anything unexpected is
logged and wrapped in InternalError here.
"""

from datetime import datetime, timezone

import logfire
from bs4 import BeautifulSoup
from pydantic import ValidationError

from src.config import Settings
from src.exceptions import ExtractionError, InternalError, ReaderError
from src.models.extraction_models import ExtractionRequest, ExtractionResult
from src.services.content_analyzer import analyze_content
from src.services.content_detector import ContentDetector, detector_for, remove_noise
from src.services.harvester import (
    derive_byline,
    derive_excerpt,
    derive_site_name,
    derive_title,
    harvest_images,
    harvest_metadata,
)
from src.services.keyword_extractor import extract_keywords
from src.services.markdown_renderer import html_to_markdown
from src.services.page_fetcher import PageFetcher
from src.services.summarizer import summarize
from src.services.text_renderer import render_text
from src.services.timing import StageTimer
from src.services.url_validator import validate_url
from src.store.result_cache import ResultCache


class ExtractionService:
    """
    Runs extractions end to end.

    The cached payload always holds the complete result (HTML, keywords and
    summary included); which parts are returned to the client is decided by
    the output formatter, so requests differing only in output toggles share
    one cache entry.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        settings: Settings,
        cache: ResultCache | None = None,
    ):
        """
        Initialize the service.

        Args:
            fetcher: Page fetcher used for network retrieval
            settings: Application settings (hosts, limits, analysis sizes)
            cache: Result cache, or None to disable caching
        """
        self._fetcher = fetcher
        self._settings = settings
        self._cache = cache

    def _detector(self, request: ExtractionRequest) -> ContentDetector:
        return detector_for(request, min_content_chars=self._settings.min_content_chars)

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """
        Extract content for one request.

        Args:
            request: The extraction request

        Returns:
            ExtractionResult, with ``cached=True`` when served from the cache

        Raises:
            ReaderError: Any subclass; unexpected failures become InternalError
        """
        try:
            return await self._extract(request)
        except ReaderError:
            raise
        except Exception as e:
            logfire.exception(
                "Unexpected extraction failure",
                url=request.url,
                mode=request.mode,
                error_type=type(e).__name__,
            )
            raise InternalError(detail=str(e)) from e

    async def _extract(self, request: ExtractionRequest) -> ExtractionResult:
        timer = StageTimer()

        with timer.stage("validate"):
            url = validate_url(
                request.url,
                self._settings.get_allowed_hosts(),
                self._settings.get_blocked_hosts(),
            )

        cache_key = ResultCache.make_key(url, request.mode, request.selector)

        if self._cache is not None and not request.no_cache:
            with timer.stage("cache_lookup"):
                cached = await self._cached_result(cache_key)
            if cached is not None:
                logfire.info("Extraction served from cache", url=url, mode=request.mode)
                return cached

        with timer.stage("fetch"):
            page = await self._fetcher.fetch(url)

        with timer.stage("parse"):
            soup = BeautifulSoup(page.html, "html.parser")
            metadata = harvest_metadata(soup)
            images = harvest_images(soup, page.url, self._settings.max_images)

        with timer.stage("detect"):
            remove_noise(soup)
            root = self._detector(request).detect(soup, page.url)
        if root is None:
            logfire.info("No content root found", url=url, mode=request.mode)
            raise ExtractionError()

        with timer.stage("render"):
            text_content = render_text(root.element)
            content_html = root.html
            markdown = html_to_markdown(content_html)

        with timer.stage("analyze"):
            analysis = analyze_content(text_content)
            keywords = extract_keywords(text_content, self._settings.max_keywords)
            summary = summarize(text_content, self._settings.summary_max_sentences)

        result = ExtractionResult(
            url=url,
            title=derive_title(metadata, soup, root.title),
            byline=derive_byline(metadata),
            excerpt=derive_excerpt(metadata),
            site_name=derive_site_name(metadata),
            mode=request.mode,
            selector=request.selector if request.mode == "selector" else None,
            text_content=text_content,
            markdown=markdown,
            html=content_html,
            analysis=analysis,
            keywords=keywords,
            summary=summary,
            metadata=metadata,
            images=images,
            extracted_at=datetime.now(timezone.utc),
            processing_time_ms=round(timer.total_ms, 2),
        )

        if self._cache is not None:
            with timer.stage("cache_write"):
                await self._cache.put(cache_key, result.model_dump(mode="json"))

        logfire.info(
            "Extraction completed",
            url=url,
            final_url=page.url,
            mode=request.mode,
            word_count=analysis.word_count,
            image_count=len(images),
            stage_times_ms={k: round(v, 2) for k, v in timer.stages.items()},
            total_time_ms=round(timer.total_ms, 2),
        )
        return result

    async def _cached_result(self, cache_key: str) -> ExtractionResult | None:
        entry = await self._cache.get(cache_key)
        if entry is None:
            return None
        try:
            result = ExtractionResult.model_validate(entry.payload)
        except ValidationError as e:
            logfire.warn("Discarding cached result with invalid shape", key=cache_key, error=str(e))
            await self._cache.invalidate(cache_key)
            return None
        return result.model_copy(update={"cached": True})
