"""Error taxonomy for the reader service.

Every failure inside the extraction pipeline is converted to one of these
kinds at the pipeline boundary. The API layer maps them to a single JSON
error payload using ``status_code`` and ``error_code``.
"""

from __future__ import annotations


class ReaderError(Exception):
    """Base exception for all reader errors."""

    status_code: int = 500
    error_code: str = "READER_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict:
        """Return the error as a JSON-serializable payload."""
        error: dict = {"code": self.error_code, "message": self.message}
        if self.hint:
            error["hint"] = self.hint
        return {"success": False, "error": error}


class InputError(ReaderError):
    """Missing or malformed URL, bad options, or unsupported content type.

    Error Code: INPUT_ERROR
    """

    status_code = 400
    error_code = "INPUT_ERROR"


class SecurityError(ReaderError):
    """Blocked or disallowed host, or credentials embedded in the URL.

    Error Code: SECURITY_ERROR
    """

    status_code = 403
    error_code = "SECURITY_ERROR"


class UpstreamError(ReaderError):
    """The target page could not be fetched.

    Error Code: UPSTREAM_ERROR, or UPSTREAM_TIMEOUT for timeouts
    """

    status_code = 502
    error_code = "UPSTREAM_ERROR"


class UpstreamTimeoutError(UpstreamError):
    """The fetch did not complete within the configured timeout.

    Error Code: UPSTREAM_TIMEOUT
    """

    status_code = 408
    error_code = "UPSTREAM_TIMEOUT"

    def __init__(self, message: str = "Request timeout") -> None:
        super().__init__(message)


class NotFoundError(ReaderError):
    """The request path names no page to extract.

    Error Code: NOT_FOUND
    """

    status_code = 404
    error_code = "NOT_FOUND"


class ExtractionError(ReaderError):
    """No content root could be found in the fetched page.

    Error Code: EXTRACTION_ERROR
    """

    status_code = 422
    error_code = "EXTRACTION_ERROR"

    def __init__(self, message: str = "Could not extract content from page") -> None:
        super().__init__(
            message,
            hint="The page may require JavaScript to render its content.",
        )


class InternalError(ReaderError):
    """Anything unanticipated.

    Error Code: INTERNAL_ERROR
    """

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, detail: str = "") -> None:
        super().__init__("An unexpected error occurred.")
        self.detail = detail


class RateLimitExceededError(ReaderError):
    """The client has used up its requests for the current window.

    Error Code: RATE_LIMITED
    """

    status_code = 429
    error_code = "RATE_LIMITED"

    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__(
            "Rate limit exceeded. Try again later.",
        )
        self.retry_after_seconds = retry_after_seconds
