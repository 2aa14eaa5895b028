"""Fetching target pages over HTTP.

The fetcher follows redirects itself, so every hop goes through the URL
safety validator before a request is sent. A page that redirects to a
private address is rejected like a direct request for it.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Iterable, Protocol
from urllib.parse import urljoin

import httpx
import logfire

from src.constants import (
    BLOCKED_HOST_PATTERNS,
    DEFAULT_ACCEPT_HEADER,
    DEFAULT_ACCEPT_LANGUAGE,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RESPONSE_BYTES,
    DEFAULT_USER_AGENT,
)
from src.exceptions import InputError, UpstreamError, UpstreamTimeoutError
from src.services.url_validator import validate_url

HTML_CONTENT_TYPES = ("text/html", "application/xhtml")
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


@dataclass
class FetchedPage:
    """A fetched HTML document and where it was finally served from."""

    url: str
    html: str
    status_code: int = 200
    content_type: str = "text/html"
    redirects: list[str] = field(default_factory=list)


class PageFetcher(Protocol):
    """Protocol for fetching page content."""

    async def fetch(self, url: str) -> FetchedPage:
        """Fetch an HTML page.

        Args:
            url: Validated absolute URL

        Returns:
            FetchedPage with the decoded HTML

        Raises:
            UpstreamError: If the page could not be fetched
            InputError: If the response is not HTML
            SecurityError: If a redirect points at a disallowed host
        """
        ...


class HttpxPageFetcher:
    """Fetch pages using httpx with browser-like headers."""

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
        user_agent: str = DEFAULT_USER_AGENT,
        allowed_hosts: Iterable[str] | None = None,
        blocked_hosts: Iterable[str] = BLOCKED_HOST_PATTERNS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the page fetcher.

        Args:
            timeout: Overall fetch timeout in seconds
            max_redirects: Redirect hops followed before giving up
            max_response_bytes: Larger bodies are rejected
            user_agent: User-Agent header value
            allowed_hosts: Host allowlist applied to redirect targets
            blocked_hosts: Host blocklist applied to redirect targets
            transport: Optional httpx transport (tests)
        """
        self._timeout = timeout
        self._max_redirects = max_redirects
        self._max_bytes = max_response_bytes
        self._allowed_hosts = list(allowed_hosts or [])
        self._blocked_hosts = list(blocked_hosts)
        self._transport = transport
        self._headers = {
            "User-Agent": user_agent,
            "Accept": DEFAULT_ACCEPT_HEADER,
            "Accept-Language": DEFAULT_ACCEPT_LANGUAGE,
        }

    def _validate(self, url: str) -> str:
        return validate_url(url, self._allowed_hosts, self._blocked_hosts)

    async def fetch(self, url: str) -> FetchedPage:
        """Fetch a page, bounded by the overall timeout."""
        try:
            return await asyncio.wait_for(self._fetch(url), timeout=self._timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logfire.warn("Page fetch timed out", url=url, timeout_seconds=self._timeout)
            raise UpstreamTimeoutError() from e
        except httpx.HTTPError as e:
            logfire.warn("Page fetch failed", url=url, error=str(e))
            raise UpstreamError("Failed to fetch target URL") from e

    async def _fetch(self, url: str) -> FetchedPage:
        redirects: list[str] = []
        current = url

        async with httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=False,
            headers=self._headers,
            transport=self._transport,
        ) as client:
            while True:
                async with client.stream("GET", current) as response:
                    if response.status_code in REDIRECT_STATUSES:
                        location = response.headers.get("location")
                        if not location:
                            raise UpstreamError(
                                "Redirect without a Location header",
                                status_code=502,
                            )
                        if len(redirects) >= self._max_redirects:
                            raise UpstreamError(
                                f"Too many redirects (max {self._max_redirects})",
                                status_code=502,
                            )
                        next_url = self._validate(urljoin(current, location))
                        logfire.debug("Following redirect", source=current, target=next_url)
                        redirects.append(next_url)
                        current = next_url
                        continue

                    if not response.is_success:
                        reason = response.reason_phrase or ""
                        raise UpstreamError(
                            f"Failed to fetch URL: {response.status_code} {reason}".strip(),
                            status_code=response.status_code,
                        )

                    content_type = response.headers.get("content-type", "")
                    if not any(t in content_type.lower() for t in HTML_CONTENT_TYPES):
                        raise InputError(
                            "Content is not HTML",
                            hint=f"Received content type: {content_type or 'unknown'}",
                        )

                    declared = response.headers.get("content-length")
                    if declared and declared.isdigit() and int(declared) > self._max_bytes:
                        raise self._too_large()

                    body = bytearray()
                    async for chunk in response.aiter_bytes():
                        body.extend(chunk)
                        if len(body) > self._max_bytes:
                            raise self._too_large()

                    html = bytes(body).decode(response.encoding or "utf-8", errors="replace")
                    logfire.info(
                        "Page fetched (httpx)",
                        url=current,
                        status_code=response.status_code,
                        content_length=len(body),
                        redirect_count=len(redirects),
                    )
                    return FetchedPage(
                        url=current,
                        html=html,
                        status_code=response.status_code,
                        content_type=content_type,
                        redirects=redirects,
                    )

    def _too_large(self) -> UpstreamError:
        return UpstreamError(
            f"Response exceeds {self._max_bytes} bytes",
            status_code=502,
        )

