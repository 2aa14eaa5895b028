"""Time-boxed cache of full extraction results."""

import hashlib
import json
import time
from dataclasses import dataclass
from typing import Any, Callable

import logfire

from src.constants import (
    CACHE_KEY_PREFIX,
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_CACHE_TTL_SECONDS,
)
from src.store.kv_store import KeyValueStore


@dataclass(frozen=True)
class CacheEntry:
    """A cached result payload with its creation and expiry timestamps."""

    key: str
    payload: dict[str, Any]
    created_at: float
    expires_at: float


class ResultCache:
    """
    Cache of extraction results on top of a KeyValueStore.

    Expiry is checked against the wall clock at read time, independently of
    any TTL the store enforces, so an entry is never served past its TTL.
    When the store is at capacity, inserting a new key evicts exactly one
    entry: the one inserted longest ago.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the cache.

        Args:
            store: Backing key-value store
            ttl_seconds: Default time-to-live for entries in seconds
            max_entries: Capacity before the oldest entry is evicted
            clock: Wall-clock function returning seconds since the epoch
        """
        self._store = store
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    @staticmethod
    def make_key(url: str, mode: str, selector: str | None = None) -> str:
        """Build a deterministic key from the normalized URL, mode and selector."""
        key_data = f"{url}|{mode}|{selector or ''}"
        digest = hashlib.sha256(key_data.encode()).hexdigest()
        return f"{CACHE_KEY_PREFIX}{digest}"

    async def get(self, key: str) -> CacheEntry | None:
        """
        Get a cached entry if present and not expired.

        Args:
            key: Cache key from make_key()

        Returns:
            CacheEntry if valid, None if not found, expired or unreadable
        """
        raw = await self._store.get(key)
        if raw is None:
            return None

        try:
            data = json.loads(raw)
            entry = CacheEntry(
                key=key,
                payload=data["payload"],
                created_at=float(data["created_at"]),
                expires_at=float(data["expires_at"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            logfire.warn("Discarding unreadable cache entry", key=key, error=str(e))
            await self._store.delete(key)
            return None

        now = self._clock()
        if now >= entry.expires_at:
            await self._store.delete(key)
            logfire.debug("Result cache expired", key=key)
            return None

        logfire.debug(
            "Result cache hit",
            key=key,
            cache_age_seconds=now - entry.created_at,
        )
        return entry

    async def put(
        self, key: str, value: dict[str, Any], ttl: int | None = None
    ) -> CacheEntry:
        """
        Cache a result payload, evicting the oldest entry when full.

        Args:
            key: Cache key from make_key()
            value: JSON-serializable result payload
            ttl: Optional TTL override in seconds; must be positive

        Returns:
            The stored CacheEntry

        Raises:
            ValueError: If the TTL is not positive
        """
        ttl = ttl if ttl is not None else self._ttl
        if ttl <= 0:
            raise ValueError(f"Cache TTL must be positive, got {ttl}")
        now = self._clock()
        entry = CacheEntry(key=key, payload=value, created_at=now, expires_at=now + ttl)

        is_new = await self._store.get(key) is None
        if is_new and await self._store.size() >= self._max_entries:
            oldest = await self._store.oldest_key()
            if oldest is not None:
                await self._store.delete(oldest)
                logfire.debug("Result cache evicted oldest entry", key=oldest)

        await self._store.set(
            key,
            json.dumps(
                {
                    "payload": value,
                    "created_at": entry.created_at,
                    "expires_at": entry.expires_at,
                },
                default=str,
            ),
            ttl,
        )
        logfire.debug("Result cached", key=key, ttl_seconds=ttl)
        return entry

    async def invalidate(self, key: str) -> None:
        """Remove one entry from the cache."""
        await self._store.delete(key)

    async def clear(self) -> None:
        """Remove all cached entries."""
        await self._store.clear()

    async def size(self) -> int:
        """Number of live entries in the backing store."""
        return await self._store.size()
