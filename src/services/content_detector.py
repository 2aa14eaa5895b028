"""Main-content detection.

A detector takes the parsed page (after noise removal) and picks the
element that holds the article. Three strategies are available:

- ReadabilityDetector: readability-lxml's scoring heuristic
- FullBodyDetector: the whole ``<body>``
- SelectorDetector: the first element matching a CSS selector

Detection returns None when nothing usable is found; the pipeline turns
that into an ExtractionError.
"""

from dataclasses import dataclass
from typing import Protocol

import logfire
from bs4 import BeautifulSoup, Tag
from readability import Document
from readability.readability import Unparseable
from soupsieve import SelectorSyntaxError

from src.constants import DEFAULT_MIN_CONTENT_CHARS
from src.exceptions import InputError
from src.models.extraction_models import ExtractionRequest

# Page chrome removed before detection runs
NOISE_SELECTORS = (
    # Structural
    "nav",
    "header",
    "footer",
    "aside",
    "menu",
    "dialog",
    # Scripts and styles
    "script",
    "style",
    "noscript",
    "template",
    # Embeds
    "iframe",
    "embed",
    "object",
    "canvas",
    # Ads and trackers
    ".ad",
    ".ads",
    ".advertisement",
    ".ad-container",
    "[class*='ad-']",
    "[id*='ad-']",
    ".tracker",
    ".analytics",
    # Social and chat widgets
    ".chat-widget",
    ".ai-box",
    ".chatbot",
    ".social-widget",
    ".share-buttons",
    ".comments-section",
    # Navigation
    ".sidebar",
    ".navbar",
    ".menu",
    ".navigation",
    ".breadcrumb",
    # UI elements
    ".modal",
    ".popup",
    ".notification",
    ".banner",
    ".cookie-consent",
    # ARIA roles
    "[role='navigation']",
    "[role='banner']",
    "[role='complementary']",
    ".hidden",
    "[aria-hidden='true']",
)

_NO_TITLE = "[no-title]"


@dataclass
class ContentRoot:
    """The element chosen as the article, plus a title if the detector found one."""

    element: Tag
    title: str | None = None

    @property
    def html(self) -> str:
        return str(self.element)


def remove_noise(soup: BeautifulSoup) -> int:
    """Remove page chrome in place; returns the number of elements removed."""
    removed = 0
    for selector in NOISE_SELECTORS:
        for element in soup.select(selector):
            # extract() is safe on elements already detached with an ancestor
            element.extract()
            removed += 1
    return removed


class ContentDetector(Protocol):
    """Protocol for picking the content root of a page."""

    name: str

    def detect(self, soup: BeautifulSoup, base_url: str) -> ContentRoot | None:
        """Return the content root, or None if no usable content was found."""
        ...


class ReadabilityDetector:
    """Content root chosen by readability-lxml's article scoring."""

    name = "readability"

    def __init__(self, min_content_chars: int = DEFAULT_MIN_CONTENT_CHARS):
        self._min_chars = min_content_chars

    def detect(self, soup: BeautifulSoup, base_url: str) -> ContentRoot | None:
        try:
            doc = Document(str(soup), url=base_url)
            fragment = doc.summary(html_partial=True)
            title = doc.short_title()
        except Unparseable as e:
            logfire.warn("Readability could not parse page", url=base_url, error=str(e))
            return None

        element = BeautifulSoup(fragment, "html.parser").find()
        if element is None:
            return None

        text_length = len(element.get_text(" ", strip=True))
        if text_length < max(self._min_chars, 1):
            logfire.info(
                "Readability found too little content",
                url=base_url,
                text_length=text_length,
                min_content_chars=self._min_chars,
            )
            return None

        if not title or title == _NO_TITLE:
            title = None
        return ContentRoot(element=element, title=title)


class FullBodyDetector:
    """The whole document body, with noise already removed."""

    name = "full"

    def detect(self, soup: BeautifulSoup, base_url: str) -> ContentRoot | None:
        body = soup.body or soup
        if not body.get_text(strip=True):
            return None
        return ContentRoot(element=body)


class SelectorDetector:
    """The first element matching a caller-supplied CSS selector."""

    name = "selector"

    def __init__(self, selector: str):
        self.selector = selector

    def detect(self, soup: BeautifulSoup, base_url: str) -> ContentRoot | None:
        try:
            element = soup.select_one(self.selector)
        except SelectorSyntaxError as e:
            raise InputError(
                f"Invalid CSS selector: {self.selector}",
                hint="Use a selector such as 'article' or '.post-content'.",
            ) from e
        if element is None:
            logfire.info("Selector matched nothing", url=base_url, selector=self.selector)
            return None
        return ContentRoot(element=element)


def detector_for(
    request: ExtractionRequest, min_content_chars: int = DEFAULT_MIN_CONTENT_CHARS
) -> ContentDetector:
    """Pick the detector for the request's extraction mode."""
    if request.mode == "full":
        return FullBodyDetector()
    if request.mode == "selector":
        return SelectorDetector(request.selector or "")
    return ReadabilityDetector(min_content_chars=min_content_chars)
