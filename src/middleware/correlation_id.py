"""Correlation ID middleware for request tracing."""

import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

import logfire

from src.dependencies import get_client_ip
from src.logging_config import mask_pii


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to requests for tracing.

    Adds a unique correlation ID to each request (or reuses the one the
    client sent) and resolves the client IP once, so handlers and logs
    share both.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Correlation-ID"):
        """
        Initialize correlation ID middleware.

        Args:
            app: ASGI application
            header_name: HTTP header name for correlation ID
        """
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and add correlation ID.

        Args:
            request: Incoming request
            call_next: Next middleware/handler

        Returns:
            Response with correlation ID header
        """
        correlation_id = request.headers.get(self.header_name.lower()) or str(uuid.uuid4())
        client_ip = get_client_ip(request)

        # Add to request state for use in handlers
        request.state.correlation_id = correlation_id
        request.state.client_ip = client_ip

        with logfire.span(
            "request",
            correlation_id=correlation_id,
            client_ip=mask_pii(client_ip),
            method=request.method,
        ):
            response = await call_next(request)
            response.headers[self.header_name] = correlation_id
            return response
