"""Per-client rate limiting for extraction requests.

Fixed-window counter: requests are counted in clock-aligned windows
(hourly by default) that reset wholesale. Bursts straddling a window
boundary can therefore reach twice the limit.
"""

import math
import time
from datetime import datetime, timezone
from typing import Callable

import logfire

from src.constants import (
    DEFAULT_RATE_LIMIT_MAX_REQUESTS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    RATE_LIMIT_KEY_PREFIX,
)
from src.logging_config import mask_pii
from src.store.kv_store import KeyValueStore


class RateLimiter:
    """Fixed-window request counter per client, stored in a KeyValueStore.

    The read-modify-write on the counter is not atomic across concurrent
    requests, so the limit is approximate under contention. Without a store
    every request is allowed.
    """

    def __init__(
        self,
        store: KeyValueStore | None,
        max_requests: int = DEFAULT_RATE_LIMIT_MAX_REQUESTS,
        window_seconds: int = DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter.

        Args:
            store: Counter store, or None to disable rate limiting.
            max_requests: Maximum allowed requests per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Wall-clock function returning seconds since the epoch.
        """
        self._store = store
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def enabled(self) -> bool:
        return self._store is not None

    def _window_index(self) -> int:
        return math.floor(self._clock() / self._window)

    def _key(self, client_id: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}{client_id}:{self._window_index()}"

    async def _current_count(self, client_id: str) -> int:
        raw = await self._store.get(self._key(client_id))
        if raw is None:
            return 0
        try:
            return int(raw)
        except ValueError:
            return 0

    async def check_and_increment(self, client_id: str) -> bool:
        """Check whether a client may make a request, counting it if so.

        Args:
            client_id: The client identifier (source IP).

        Returns:
            True if the request is allowed, False if the limit is reached.
        """
        if self._store is None:
            return True

        count = await self._current_count(client_id)
        if count >= self._max_requests:
            logfire.warn(
                "Rate limit exceeded",
                client_id=mask_pii(client_id),
                request_count=count,
                max_requests=self._max_requests,
                window_seconds=self._window,
            )
            return False

        await self._store.set(self._key(client_id), str(count + 1), self._window)
        return True

    async def get_remaining_requests(self, client_id: str) -> int:
        """Get the number of remaining requests for a client in this window.

        Args:
            client_id: The client identifier.

        Returns:
            Number of remaining requests in the current window.
        """
        if self._store is None:
            return self._max_requests
        count = await self._current_count(client_id)
        return max(0, self._max_requests - count)

    def get_window_reset_time(self) -> datetime:
        """Get when the current window ends and every counter resets.

        Returns:
            Timezone-aware datetime of the next window boundary.
        """
        reset_at = (self._window_index() + 1) * self._window
        return datetime.fromtimestamp(reset_at, tz=timezone.utc)

    def seconds_until_reset(self) -> int:
        """Whole seconds until the current window ends (at least 1)."""
        reset_at = (self._window_index() + 1) * self._window
        return max(1, math.ceil(reset_at - self._clock()))

    async def reset(self, client_id: str | None = None) -> None:
        """Reset rate limit tracking for the current window.

        Args:
            client_id: If provided, reset only for this client. Otherwise reset all.
        """
        if self._store is None:
            return
        if client_id:
            await self._store.delete(self._key(client_id))
        else:
            await self._store.clear()
