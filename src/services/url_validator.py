"""URL safety validation.

Normalizes and vets a candidate target URL before any network access.
This is the only defense against the service being pointed at loopback
or private-network addresses, so it runs before every fetch, including
every redirect hop.
"""

import re
from typing import Iterable
from urllib.parse import urlsplit, urlunsplit

import logfire

from src.constants import BLOCKED_HOST_PATTERNS
from src.exceptions import InputError, SecurityError

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")


def _host_matches(host: str, patterns: Iterable[str]) -> str | None:
    """Return the first pattern contained in host, if any."""
    for pattern in patterns:
        if pattern and pattern in host:
            return pattern
    return None


def validate_url(
    raw_url: str,
    allowed_hosts: Iterable[str] | None = None,
    blocked_hosts: Iterable[str] = BLOCKED_HOST_PATTERNS,
) -> str:
    """Normalize a raw URL and reject unsafe targets.

    Performs the following steps:
    - Prepends ``https://`` when no scheme is present
    - Forces the scheme to https
    - Rejects embedded credentials
    - Rejects hosts containing a blocklist entry (substring match)
    - Rejects hosts not containing an allowlist entry, if an allowlist is set

    Substring matching is deliberately conservative: a public hostname that
    merely contains a blocked token (e.g. ``app10.example.com`` and ``10.``)
    is rejected too.

    Args:
        raw_url: The URL as supplied by the client, possibly without scheme.
        allowed_hosts: Optional allowlist of host fragments; empty allows all.
        blocked_hosts: Blocklist of host fragments.

    Returns:
        The canonical absolute https URL (fragment dropped, host lower-cased).

    Raises:
        InputError: If the URL is missing or malformed.
        SecurityError: If the host is blocked/not allowed or credentials are present.
    """
    if raw_url is None or not raw_url.strip():
        raise InputError("Missing URL parameter")

    candidate = raw_url.strip()
    if not _SCHEME_RE.match(candidate):
        candidate = "https://" + candidate

    try:
        parts = urlsplit(candidate)
        host = parts.hostname
        port = parts.port
    except ValueError as e:
        raise InputError("invalid URL") from e

    if not host or any(ch.isspace() for ch in parts.netloc):
        raise InputError("invalid URL")

    if parts.username is not None or parts.password is not None or "@" in parts.netloc:
        # Never log the userinfo itself
        logfire.warn("Rejected URL with embedded credentials", host=host)
        raise SecurityError("URLs with embedded credentials are not allowed")

    host = host.lower()

    blocked = _host_matches(host, (p.lower() for p in blocked_hosts))
    if blocked:
        logfire.warn("Rejected blocked host", host=host, pattern=blocked)
        raise SecurityError(f"Host is not allowed: {host}")

    allowed = [h.lower() for h in (allowed_hosts or []) if h]
    if allowed and not _host_matches(host, allowed):
        logfire.warn("Rejected host outside allowlist", host=host)
        raise SecurityError(f"Host is not in the allowlist: {host}")

    netloc = f"[{host}]" if ":" in host else host
    if port is not None:
        netloc = f"{netloc}:{port}"

    return urlunsplit(("https", netloc, parts.path or "/", parts.query, ""))
