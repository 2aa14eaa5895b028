"""Key-value store abstraction shared by the result cache and the rate limiter.

Both the cache and the rate limiter only need a small async surface:
get/set with a per-key TTL, delete, and enough insertion-order information
to evict the oldest entry. Using a Protocol allows the in-memory store to be
swapped for Redis (or a test double) without touching the callers.
"""

import math
import time
from threading import Lock
from typing import Callable, Protocol


class KeyValueStore(Protocol):
    """Protocol for a TTL-aware key-value store with string values."""

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value that expires after ttl_seconds.

        Re-setting an existing key counts as a fresh insertion.
        """
        ...

    async def delete(self, key: str) -> None:
        """Remove a key if present."""
        ...

    async def size(self) -> int:
        """Return the number of live entries."""
        ...

    async def oldest_key(self) -> str | None:
        """Return the key inserted longest ago, or None if empty."""
        ...

    async def clear(self) -> None:
        """Remove every entry."""
        ...


class InMemoryStore:
    """
    Thread-safe in-process implementation of KeyValueStore.

    Entries live in a dict, whose iteration order is insertion order, so the
    first live key is always the oldest insertion. Expiry is checked against
    the injected clock whenever an entry is read, and writes sweep out expired
    entries once the earliest known expiry has passed, so keys that are never
    read again do not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Initialize the store.

        Args:
            clock: Wall-clock function returning seconds since the epoch
        """
        self._data: dict[str, tuple[str, float]] = {}
        self._clock = clock
        self._lock = Lock()
        self._next_expiry = math.inf

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]
        self._next_expiry = min(
            (expires_at for _, expires_at in self._data.values()), default=math.inf
        )

    async def get(self, key: str) -> str | None:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            if now >= self._next_expiry:
                self._purge_expired()
            expires_at = now + ttl_seconds
            # Pop first so the key moves to the end of the insertion order
            self._data.pop(key, None)
            self._data[key] = (value, expires_at)
            self._next_expiry = min(self._next_expiry, expires_at)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    async def size(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._data)

    async def oldest_key(self) -> str | None:
        with self._lock:
            self._purge_expired()
            return next(iter(self._data), None)

    async def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._next_expiry = math.inf
