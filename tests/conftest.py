"""Shared pytest fixtures and configuration.

This module centralizes all test fixtures to:
- Eliminate duplicate fixtures across test files
- Provide consistent test data structures
- Make tests more maintainable

Fixture Categories:
1. Sample data: sample_html, sample_result
2. Fakes: FakeFetcher, fake_fetcher, FakeClock, fake_clock
3. Services: memory_store, result_cache, rate_limiter, extraction_service
4. Infrastructure: respx_mock, mock_settings, logfire_capture, mock_logfire, test_client
"""

import os
from contextlib import contextmanager
from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

import pytest
import respx

# Suppress warnings when logfire isn't configured in tests
os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

import logfire

from src.config import Settings
from src.middleware.rate_limiter import RateLimiter
from src.models.analysis_models import ContentAnalysis, ImageRef, Keyword, Summary, SummarySentence
from src.models.extraction_models import ExtractionResult
from src.services.extraction_service import ExtractionService
from src.services.page_fetcher import FetchedPage
from src.store.kv_store import InMemoryStore
from src.store.result_cache import ResultCache

ARTICLE_URL = "https://example.com/articles/tide-pools"

SAMPLE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <title>Understanding Tide Pools | Coastal Notes</title>
  <meta charset="utf-8">
  <meta name="description" content="A short guide to the life found in rocky tide pools.">
  <meta name="author" content="Jordan Reyes">
  <meta property="og:title" content="Understanding Tide Pools">
  <meta property="og:site_name" content="Coastal Notes">
  <meta name="twitter:card" content="summary">
  <link rel="canonical" href="https://example.com/articles/tide-pools">
</head>
<body>
  <header><nav><a href="/">Home</a> <a href="/about">About us</a></nav></header>
  <div class="ad-banner">Buy now and save big on everything</div>
  <article class="post">
    <h1>Understanding Tide Pools</h1>
    <p>Tide pools form when the ocean retreats at low tide and leaves seawater trapped among the rocks. These small basins host a surprising variety of marine life.</p>
    <p>Sea anemones, hermit crabs and starfish all make their homes in tide pools. Each species has adapted to survive constant changes in temperature and salinity.</p>
    <p>Visitors should step carefully and avoid turning over rocks, because the animals living underneath depend on the shade and moisture those rocks provide.</p>
    <img src="/images/anemone.jpg" alt="Green anemone" width="640" height="480">
    <img src="data:image/png;base64,AAAA" alt="inline pixel">
  </article>
  <footer>Copyright Coastal Notes</footer>
</body>
</html>
"""


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """PageFetcher double that serves fixed HTML and records requested URLs."""

    def __init__(self, html: str = SAMPLE_HTML, error: Exception | None = None):
        self.html = html
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, url: str) -> FetchedPage:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return FetchedPage(url=url, html=self.html)


@pytest.fixture
def respx_mock():
    """Respx mock router for HTTP mocking."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def sample_html() -> str:
    return SAMPLE_HTML


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def fetcher_factory():
    """The FakeFetcher class, for tests that need custom HTML or errors."""
    return FakeFetcher


@pytest.fixture
def article_url() -> str:
    return ARTICLE_URL


@pytest.fixture
def memory_store(fake_clock) -> InMemoryStore:
    return InMemoryStore(clock=fake_clock)


@pytest.fixture
def result_cache(memory_store, fake_clock) -> ResultCache:
    return ResultCache(memory_store, ttl_seconds=3600, max_entries=100, clock=fake_clock)


@pytest.fixture
def mock_settings(monkeypatch) -> Settings:
    """Mock application settings, independent of any .env file."""
    settings = Settings(
        _env_file=None,
        env="local",
        logfire_token=None,
        sentry_dsn=None,
        store_backend="memory",
        rate_limit_max_requests=5,
        rate_limit_window_seconds=3600,
        cache_ttl_seconds=3600,
        cache_max_entries=100,
    )

    monkeypatch.setattr("src.config.get_settings", lambda: settings)
    # Patch where get_settings is used so request handlers see the mock
    monkeypatch.setattr("src.main.get_settings", lambda: settings)
    monkeypatch.setattr("src.logging_config.get_settings", lambda: settings)
    monkeypatch.setattr("src.cli.reader_cli.get_settings", lambda: settings)
    return settings


@pytest.fixture
def rate_limiter(mock_settings) -> RateLimiter:
    return RateLimiter(
        InMemoryStore(),
        max_requests=mock_settings.rate_limit_max_requests,
        window_seconds=mock_settings.rate_limit_window_seconds,
    )


@pytest.fixture
def extraction_service(mock_settings, fake_fetcher, result_cache) -> ExtractionService:
    return ExtractionService(fetcher=fake_fetcher, settings=mock_settings, cache=result_cache)


@pytest.fixture
def sample_result() -> ExtractionResult:
    """A complete extraction result for formatter and API tests."""
    return ExtractionResult(
        url=ARTICLE_URL,
        title="Understanding Tide Pools",
        byline="Jordan Reyes",
        excerpt="A short guide to the life found in rocky tide pools.",
        site_name="Coastal Notes",
        mode="readability",
        text_content="Understanding Tide Pools\n\nTide pools form at low tide.",
        markdown="# Understanding Tide Pools\n\nTide pools form at **low tide**.",
        html="<div><h1>Understanding Tide Pools</h1><p>Tide pools form at low tide.</p></div>",
        analysis=ContentAnalysis(
            word_count=9,
            sentence_count=1,
            paragraph_count=2,
            reading_time_minutes=1,
            readability_score=87,
            avg_words_per_sentence=9.0,
            avg_sentences_per_paragraph=0.5,
            character_count=54,
            character_count_no_spaces=45,
        ),
        keywords=[Keyword(term="tide", count=2, frequency=22.22)],
        summary=Summary(
            sentences=[SummarySentence(text="Tide pools form when the ocean retreats", score=1.39, position=0)],
            text="Tide pools form when the ocean retreats.",
        ),
        metadata={"description": "A short guide to the life found in rocky tide pools."},
        images=[ImageRef(src="https://example.com/images/anemone.jpg", alt="Green anemone")],
        extracted_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        processing_time_ms=12.5,
    )


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    This fixture patches Logfire to capture log calls for assertion.
    """
    captured_logs = []

    original_info = logfire.info
    original_warn = logfire.warn
    original_error = logfire.error

    def capture_info(*args, **kwargs):
        captured_logs.append(("info", args, kwargs))
        return original_info(*args, **kwargs)

    def capture_warn(*args, **kwargs):
        captured_logs.append(("warn", args, kwargs))
        return original_warn(*args, **kwargs)

    def capture_error(*args, **kwargs):
        captured_logs.append(("error", args, kwargs))
        return original_error(*args, **kwargs)

    with (
        patch("logfire.info", side_effect=capture_info),
        patch("logfire.warn", side_effect=capture_warn),
        patch("logfire.error", side_effect=capture_error),
    ):
        yield captured_logs


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Mock Logfire for testing without actual logging.

    Patches the attributes on the logfire module itself, so every module
    that does ``import logfire`` sees the mock.
    """

    @contextmanager
    def mock_span(*args, **kwargs):
        yield MagicMock()

    mock_logfire_module = MagicMock()
    mock_logfire_module.info = Mock()
    mock_logfire_module.warn = Mock()
    mock_logfire_module.error = Mock()
    mock_logfire_module.debug = Mock()
    mock_logfire_module.exception = Mock()
    mock_logfire_module.span = mock_span
    mock_logfire_module.configure = Mock()
    mock_logfire_module.instrument_fastapi = Mock()
    mock_logfire_module.instrument_pydantic = Mock()
    mock_logfire_module.instrument_httpx = Mock()

    for attr in [
        "info",
        "warn",
        "error",
        "debug",
        "exception",
        "span",
        "configure",
        "instrument_fastapi",
        "instrument_pydantic",
        "instrument_httpx",
    ]:
        if hasattr(logfire, attr):
            monkeypatch.setattr(logfire, attr, getattr(mock_logfire_module, attr))

    return mock_logfire_module


@pytest.fixture
def test_client(mock_settings, mock_logfire, extraction_service, rate_limiter):
    """FastAPI TestClient for E2E tests, wired to fakes via dependency overrides."""
    from fastapi.testclient import TestClient

    from src.dependencies import get_extraction_service, get_rate_limiter
    from src.main import app

    app.dependency_overrides[get_extraction_service] = lambda: extraction_service
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
