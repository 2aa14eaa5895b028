"""Application-wide constants.

This module centralizes all magic numbers and configuration constants
to ensure a single source of truth and easier maintenance.

Constants are organized by category. Settings in src/config.py use these
values as defaults, so most of them can be overridden via environment
variables.
"""

# =============================================================================
# Fetch Configuration
# =============================================================================

# Timeout for fetching the target page (seconds)
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0

# Maximum number of redirects followed for a single fetch
DEFAULT_MAX_REDIRECTS = 5

# Maximum accepted response body size (bytes) - 5 MB
DEFAULT_MAX_RESPONSE_BYTES = 5 * 1024 * 1024

# User agent sent with every fetch
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; WebReader/1.0; +https://github.com/web-reader-api)"
)

# Accept header values sent with every fetch
DEFAULT_ACCEPT_HEADER = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
)
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.5"

# =============================================================================
# URL Safety
# =============================================================================

# Loopback and private-network host fragments. Matched by substring
# containment against the lower-cased host, so hostnames that merely
# contain one of these tokens are rejected as well.
# Known gaps: "::1" does not match the expanded loopback form
# (0:0:0:0:0:0:0:1), and IPv6 link-local (fe80::/10) and unique-local
# (fc00::/7) ranges are not listed. Extend BLOCKED_HOSTS to cover them.
BLOCKED_HOST_PATTERNS = (
    "localhost",
    "127.0.0.1",
    "0.0.0.0",
    "10.",
    "172.16.",
    "172.17.",
    "172.18.",
    "172.19.",
    "172.20.",
    "172.21.",
    "172.22.",
    "172.23.",
    "172.24.",
    "172.25.",
    "172.26.",
    "172.27.",
    "172.28.",
    "172.29.",
    "172.30.",
    "172.31.",
    "192.168.",
    "169.254.",
    "::1",
)

# =============================================================================
# Content Extraction
# =============================================================================

# Minimum visible characters for a detected content root to count as an article
DEFAULT_MIN_CONTENT_CHARS = 1

# Maximum number of images returned per page
DEFAULT_MAX_IMAGES = 20

# Length of the auto-generated description taken from the first paragraph
AUTO_DESCRIPTION_MAX_CHARS = 200

# =============================================================================
# Content Analysis
# =============================================================================

# Average adult reading speed used for the reading time estimate
WORDS_PER_MINUTE = 200

# Sentence fragments at or below this length are not counted as sentences
MIN_SENTENCE_CHARS = 10

# Default number of keywords returned
DEFAULT_MAX_KEYWORDS = 15

# Keywords at or below this length are discarded
MIN_KEYWORD_LENGTH = 3

# Default number of summary sentences
DEFAULT_SUMMARY_MAX_SENTENCES = 3

# Summary candidates must be strictly longer/shorter than these bounds
SUMMARY_MIN_SENTENCE_CHARS = 30
SUMMARY_MAX_SENTENCE_CHARS = 500

# =============================================================================
# Cache Configuration
# =============================================================================

# TTL for extraction results (seconds) - 1 hour
DEFAULT_CACHE_TTL_SECONDS = 3600

# Maximum number of cached extraction results
DEFAULT_CACHE_MAX_ENTRIES = 1000

# Prefix for cache keys in the key-value store
CACHE_KEY_PREFIX = "extract:"

# =============================================================================
# Rate Limiting
# =============================================================================

# Maximum requests per client per window
DEFAULT_RATE_LIMIT_MAX_REQUESTS = 100

# Rate limit window in seconds - 1 hour, clock aligned
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 3600

# Prefix for rate limit counter keys in the key-value store
RATE_LIMIT_KEY_PREFIX = "ratelimit:"

# =============================================================================
# Redis
# =============================================================================

DEFAULT_REDIS_URL = "redis://localhost:6379/0"

# Consecutive failures before the Redis store stops trying for a cooldown
REDIS_CIRCUIT_THRESHOLD = 5

# Cooldown after the circuit opens (seconds)
REDIS_CIRCUIT_COOLDOWN_SECONDS = 10.0
