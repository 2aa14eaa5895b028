"""Extraction endpoints.

The target URL can be given four ways:

- ``GET /?url=https://example.com``
- ``GET /https://example.com/page`` (path-embedded)
- ``POST /`` with a JSON body ``{"url": "https://example.com"}``
- ``POST /`` with a form body ``url=https://example.com``

Options (``format``, ``mode``, ``selector``, ``includeHtml``, ``keywords``,
``summary``, ``maxLength``, ``nocache``) come from the query string or the
request body. Every extraction request is rate limited per client IP.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import parse_qs, urlencode

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.dependencies import get_client_ip, get_extraction_service, get_rate_limiter
from src.exceptions import InputError, NotFoundError, RateLimitExceededError
from src.middleware.rate_limiter import RateLimiter
from src.models.extraction_models import OUTPUT_FORMATS, ExtractionRequest
from src.services.extraction_service import ExtractionService
from src.services.output_formatter import format_result

router = APIRouter()

USAGE = {
    "path_embedded": "GET /https://example.com",
    "query_param": "GET /?url=https://example.com",
    "post_json": 'POST / with {"url": "https://example.com"}',
    "post_form": "POST / with url=https://example.com",
    "options": {
        "format": "text | markdown | json | html",
        "mode": "readability | full | <css selector>",
        "selector": "CSS selector (with mode=selector)",
        "includeHtml": "true | false",
        "keywords": "true | false",
        "summary": "true | false",
        "maxLength": "positive integer",
        "nocache": "true | false",
    },
}

OPTION_NAMES = frozenset(
    {
        "url",
        "format",
        "mode",
        "selector",
        "includeHtml",
        "keywords",
        "summary",
        "maxLength",
        "nocache",
    }
)

TRUE_VALUES = frozenset({"", "1", "true", "yes", "on"})

# Proxies often merge the double slash of an embedded scheme
_COLLAPSED_SCHEME_RE = re.compile(r"^(https?):/+", re.IGNORECASE)

# Paths browsers and crawlers request on their own
BROWSER_NOISE_PATHS = frozenset(
    {
        "favicon.ico",
        "robots.txt",
        "sitemap.xml",
        "humans.txt",
        "apple-touch-icon.png",
        "apple-touch-icon-precomposed.png",
        ".well-known",
    }
)


@dataclass(frozen=True)
class RateLimitStatus:
    limit: int
    remaining: int


def _flag(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in TRUE_VALUES


def _max_length(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        parsed = int(str(value).strip())
    except ValueError as e:
        raise InputError("maxLength must be a positive integer") from e
    if parsed <= 0:
        raise InputError("maxLength must be a positive integer")
    return parsed


def build_extraction_request(
    url: Any, params: Mapping[str, Any], accept: str = ""
) -> ExtractionRequest:
    """
    Build an ExtractionRequest from raw request parameters.

    Args:
        url: Target URL as supplied
        params: Option values from the query string and/or body
        accept: The request's Accept header

    Raises:
        InputError: If the URL or any option is invalid
    """
    if not isinstance(url, str) or not url.strip():
        raise InputError("Missing URL parameter")

    output_format = str(params.get("format") or "").strip().lower()
    if not output_format:
        output_format = "json" if "application/json" in accept.lower() else "text"
    if output_format not in OUTPUT_FORMATS:
        raise InputError(
            f"Unsupported format: {output_format}",
            hint=f"Use one of: {', '.join(OUTPUT_FORMATS)}",
        )

    mode = params.get("mode")
    selector = params.get("selector")
    try:
        return ExtractionRequest(
            url=url.strip(),
            format=output_format,
            mode=str(mode) if mode is not None else "readability",
            selector=str(selector) if selector else None,
            include_html=_flag(params.get("includeHtml")),
            include_keywords=_flag(params.get("keywords")),
            include_summary=_flag(params.get("summary")),
            max_length=_max_length(params.get("maxLength")),
            no_cache=_flag(params.get("nocache")),
        )
    except ValidationError as e:
        first = e.errors()[0]
        message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
        raise InputError(message) from e


def apply_rate_limit_headers(request: Request, response: Response) -> Response:
    """Copy the request's rate limit status, if any, onto the response."""
    status: RateLimitStatus | None = getattr(request.state, "rate_limit", None)
    if status is not None:
        response.headers["X-RateLimit-Limit"] = str(status.limit)
        response.headers["X-RateLimit-Remaining"] = str(status.remaining)
    return response


async def enforce_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """Count the request against the client's window; raise once it is used up."""
    if not limiter.enabled:
        return
    client_ip = getattr(request.state, "client_ip", None) or get_client_ip(request)
    allowed = await limiter.check_and_increment(client_ip)
    remaining = await limiter.get_remaining_requests(client_ip)
    request.state.rate_limit = RateLimitStatus(limiter.max_requests, remaining)
    if not allowed:
        raise RateLimitExceededError(limiter.seconds_until_reset())


async def _respond(
    request: Request,
    url: Any,
    params: Mapping[str, Any],
    service: ExtractionService,
) -> Response:
    extraction_request = build_extraction_request(
        url, params, request.headers.get("accept", "")
    )
    result = await service.extract(extraction_request)
    output = format_result(result, extraction_request)
    response = Response(content=output.body, media_type=output.media_type)
    response.headers["X-Cache"] = "HIT" if result.cached else "MISS"
    return apply_rate_limit_headers(request, response)


def _usage_response(request: Request) -> JSONResponse:
    payload = InputError("Missing URL parameter").to_payload()
    payload["usage"] = USAGE
    return apply_rate_limit_headers(request, JSONResponse(payload, status_code=400))


async def _read_body(request: Request) -> dict[str, Any]:
    content_type = request.headers.get("content-type", "").lower()
    raw = await request.body()
    if not raw:
        return {}
    if "application/json" in content_type:
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise InputError("Request body is not valid JSON") from e
        if not isinstance(data, dict):
            raise InputError("Request body must be a JSON object")
        return data
    if "application/x-www-form-urlencoded" in content_type:
        parsed = parse_qs(raw.decode("utf-8", errors="replace"), keep_blank_values=True)
        return {key: values[-1] for key, values in parsed.items()}
    return {}


@router.get("/", dependencies=[Depends(enforce_rate_limit)])
async def extract_from_query(
    request: Request,
    service: ExtractionService = Depends(get_extraction_service),
):
    """Extract the page given by the ``url`` query parameter."""
    params = request.query_params
    url = params.get("url")
    if not url:
        return _usage_response(request)
    return await _respond(request, url, params, service)


@router.post("/", dependencies=[Depends(enforce_rate_limit)])
async def extract_from_body(
    request: Request,
    service: ExtractionService = Depends(get_extraction_service),
):
    """Extract the page given by ``url`` in a JSON or form body."""
    body = await _read_body(request)
    params = {**request.query_params, **body}
    url = body.get("url") or request.query_params.get("url")
    if not url:
        return _usage_response(request)
    return await _respond(request, url, params, service)


def _embedded_url(target: str) -> str:
    return _COLLAPSED_SCHEME_RE.sub(lambda m: f"{m.group(1)}://", target)


def is_page_target(target: str) -> bool:
    """
    Whether a path-embedded target can name a page.

    A target needs a scheme or a dotted host, and must not be one of the
    paths browsers request by themselves (favicon.ico, robots.txt, ...).
    """
    url = _embedded_url(target)
    if "://" in url:
        return True
    host = re.split(r"[/?#]", url, maxsplit=1)[0].lower()
    if host in BROWSER_NOISE_PATHS:
        return False
    return "." in host or host.startswith("[")


async def require_page_target(target: str) -> None:
    """Answer 404 for paths that name no page, before the request is counted."""
    if not is_page_target(target):
        raise NotFoundError(f"Not found: /{target}")


# Registered last: matches every other path
@router.get(
    "/{target:path}",
    dependencies=[Depends(require_page_target), Depends(enforce_rate_limit)],
)
async def extract_from_path(
    target: str,
    request: Request,
    service: ExtractionService = Depends(get_extraction_service),
):
    """Extract the page whose URL is embedded in the path."""
    url = _embedded_url(target)
    # Query parameters that are not options belong to the target URL
    passthrough = [
        (key, value)
        for key, value in request.query_params.multi_items()
        if key not in OPTION_NAMES
    ]
    if passthrough and url:
        url = f"{url}{'&' if '?' in url else '?'}{urlencode(passthrough)}"
    if not url:
        return _usage_response(request)
    return await _respond(request, url, request.query_params, service)
