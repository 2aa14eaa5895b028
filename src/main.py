"""FastAPI application initialization."""

import os
from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration

from src.api import extract, health
from src.api.extract import apply_rate_limit_headers
from src.config import get_settings
from src.dependencies import build_services
from src.exceptions import InternalError, RateLimitExceededError, ReaderError
from src.logging_config import setup_logfire
from src.middleware.correlation_id import CorrelationIDMiddleware

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: build shared services, release them on shutdown."""
    settings = get_settings()

    # Initialize Logfire for observability
    setup_logfire(app)

    # Initialize Sentry if DSN is provided
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            environment=settings.env,
            integrations=[FastApiIntegration()],
        )

    services = build_services(settings)
    app.state.services = services

    logfire.info(
        "Application startup complete",
        environment=settings.env,
        store_backend=settings.store_backend,
        rate_limit_max_requests=settings.rate_limit_max_requests,
    )

    yield

    await services.aclose()
    logfire.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Web Reader API",
    description="Fetches web pages and returns their main content as text, Markdown, JSON or HTML",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Correlation ID middleware (must be first for request tracing)
app.add_middleware(CorrelationIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    expose_headers=[
        "X-Cache",
        "X-Correlation-ID",
        "X-RateLimit-Limit",
        "X-RateLimit-Remaining",
        "Retry-After",
    ],
)


@app.exception_handler(ReaderError)
async def reader_error_handler(request: Request, exc: ReaderError) -> JSONResponse:
    """Render any ReaderError as the JSON error payload."""
    payload = exc.to_payload()
    if isinstance(exc, InternalError) and exc.detail and get_settings().env == "local":
        payload["error"]["detail"] = exc.detail

    response = JSONResponse(payload, status_code=exc.status_code)
    if isinstance(exc, RateLimitExceededError):
        response.headers["Retry-After"] = str(exc.retry_after_seconds)
    return apply_rate_limit_headers(request, response)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for errors raised outside the extraction pipeline."""
    logfire.exception("Unhandled error", error_type=type(exc).__name__)
    return await reader_error_handler(request, InternalError(detail=str(exc)))


# Register routers; the extract router ends with a catch-all path route
app.include_router(health.router, tags=["health"])
app.include_router(extract.router, tags=["extract"])


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=port, reload=os.getenv("ENV") == "local"
    )
