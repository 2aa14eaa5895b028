"""Service construction and FastAPI dependency providers.

Stores, the cache, the rate limiter and the extraction service are built
once per process (in the application lifespan) and kept on ``app.state``.
Route handlers get them through the ``get_*`` providers below, which tests
replace with ``app.dependency_overrides``.
"""

from dataclasses import dataclass, field

from fastapi import Request

from src.config import Settings
from src.middleware.rate_limiter import RateLimiter
from src.services.extraction_service import ExtractionService
from src.services.page_fetcher import HttpxPageFetcher, PageFetcher
from src.store.kv_store import InMemoryStore, KeyValueStore
from src.store.redis_store import RedisStore
from src.store.result_cache import ResultCache


@dataclass
class Services:
    """Process-wide services held on app.state."""

    extraction_service: ExtractionService
    rate_limiter: RateLimiter
    closeables: list[RedisStore] = field(default_factory=list)

    async def aclose(self) -> None:
        for store in self.closeables:
            await store.close()


def build_stores(settings: Settings) -> tuple[KeyValueStore | None, KeyValueStore | None]:
    """
    Create the cache store and the rate limit store for the configured backend.

    Returns:
        (cache_store, rate_limit_store); both None when the backend is "none"
    """
    if settings.store_backend == "none":
        return None, None
    if settings.store_backend == "redis":
        cache_store = RedisStore.from_url(
            settings.redis_url,
            "reader:cache",
            index_ttl_seconds=settings.cache_ttl_seconds,
        )
        rate_store = RedisStore.from_url(
            settings.redis_url,
            "reader:ratelimit",
            track_insertion=False,
        )
        return cache_store, rate_store
    return InMemoryStore(), InMemoryStore()


def build_fetcher(settings: Settings) -> HttpxPageFetcher:
    return HttpxPageFetcher(
        timeout=settings.fetch_timeout_seconds,
        max_redirects=settings.max_redirects,
        max_response_bytes=settings.max_response_bytes,
        user_agent=settings.user_agent,
        allowed_hosts=settings.get_allowed_hosts(),
        blocked_hosts=settings.get_blocked_hosts(),
    )


def build_extraction_service(
    settings: Settings,
    cache_store: KeyValueStore | None = None,
    fetcher: PageFetcher | None = None,
) -> ExtractionService:
    cache = (
        ResultCache(
            cache_store,
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
        )
        if cache_store is not None
        else None
    )
    return ExtractionService(
        fetcher=fetcher or build_fetcher(settings),
        settings=settings,
        cache=cache,
    )


def build_rate_limiter(settings: Settings, store: KeyValueStore | None) -> RateLimiter:
    return RateLimiter(
        store,
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def build_services(settings: Settings) -> Services:
    """Build every process-wide service from settings."""
    cache_store, rate_store = build_stores(settings)
    return Services(
        extraction_service=build_extraction_service(settings, cache_store),
        rate_limiter=build_rate_limiter(settings, rate_store),
        closeables=[s for s in (cache_store, rate_store) if isinstance(s, RedisStore)],
    )


def get_extraction_service(request: Request) -> ExtractionService:
    """Dependency provider for the extraction service."""
    return request.app.state.services.extraction_service


def get_rate_limiter(request: Request) -> RateLimiter:
    """Dependency provider for the rate limiter."""
    return request.app.state.services.rate_limiter


def get_client_ip(request: Request) -> str:
    """
    Resolve the client address used for rate limiting.

    Prefers the CDN-provided ``cf-connecting-ip`` header, then the first
    ``x-forwarded-for`` entry, then the socket peer.
    """
    cf_ip = request.headers.get("cf-connecting-ip", "").strip()
    if cf_ip:
        return cf_ip
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
