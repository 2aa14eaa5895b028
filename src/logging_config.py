"""Centralized logging configuration with Pydantic Logfire integration."""

import logging
import re
from typing import Any

import logfire
from fastapi import FastAPI

from src.config import get_settings

# Userinfo after a scheme separator, plain or percent-encoded (as in a query
# string). The userinfo may not cross a path separator.
_URL_CREDENTIALS_RE = re.compile(
    r"(://|%3A%2F%2F)(?:(?!%2F)[^/?#&\s@])+?(?:@|%40)", re.IGNORECASE
)


def setup_logfire(app: FastAPI) -> None:
    """
    Initialize and configure Pydantic Logfire for observability.

    Sets up:
    - FastAPI instrumentation (request/response tracing)
    - Pydantic instrumentation (model validation logging)
    - httpx instrumentation (outbound page fetches)
    - Environment-aware configuration
    """
    settings = get_settings()

    logfire_config: dict[str, Any] = {
        "environment": settings.env,
        "service_name": "web-reader-api",
        "send_to_logfire": "if-token-present",
    }

    # Add token if provided (for cloud logging); without one, spans stay local
    if settings.logfire_token:
        logfire_config["token"] = settings.logfire_token

    # Initialize Logfire
    logfire.configure(**logfire_config)

    # Instrument FastAPI (requires app) and Pydantic. Target URLs arrive in the
    # request path and query, so credentials are stripped from span attributes.
    logfire.instrument_fastapi(
        app,
        request_attributes_mapper=redact_request_attributes,
        server_request_hook=redact_server_span,
    )
    logfire.instrument_pydantic()
    logfire.instrument_httpx()

    # Configure Python logging based on environment
    log_level = settings.log_level

    if settings.env == "local":
        # Local: Console formatting for development
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    else:
        # Production: Structured JSON logging
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format="%(message)s",  # Logfire handles structured formatting
        )


def mask_pii(value: str | None, mask_char: str = "*") -> str:
    """
    Mask potentially sensitive data in logs.

    Args:
        value: Value to mask
        mask_char: Character to use for masking

    Returns:
        Masked string
    """
    if not value:
        return ""

    if len(value) <= 4:
        return mask_char * len(value)

    # Show first 2 and last 2 characters, mask the rest
    return f"{value[:2]}{mask_char * (len(value) - 4)}{value[-2:]}"



def redact_url_credentials(value: str) -> str:
    """Remove ``user:password@`` from every URL in a string, keeping the host."""
    return _URL_CREDENTIALS_RE.sub(r"\1", value)


def redact_server_span(span: Any, scope: dict[str, Any]) -> None:
    """
    OpenTelemetry server request hook for FastAPI.

    Rewrites the request attributes already recorded on the span
    (``url.query``, ``http.target``, ``url.path`` and friends) without any
    credentials a target URL carried.
    """
    if span is None or not span.is_recording():
        return
    for key, value in dict(getattr(span, "attributes", None) or {}).items():
        if isinstance(value, str):
            redacted = redact_url_credentials(value)
            if redacted != value:
                span.set_attribute(key, redacted)


def redact_request_attributes(request: Any, attributes: dict[str, Any]) -> dict[str, Any]:
    """Logfire request attributes mapper: strip credentials from endpoint arguments."""
    values = attributes.get("values")
    if isinstance(values, dict):
        attributes["values"] = {
            key: redact_url_credentials(value) if isinstance(value, str) else value
            for key, value in values.items()
        }
    return attributes
