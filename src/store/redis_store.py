"""Redis-backed KeyValueStore with graceful degradation.

When Redis is unavailable, operations return empty defaults instead of
raising, so extraction keeps working without caching or rate limiting.
After several consecutive failures the store stops calling Redis for a
cooldown period.
"""

import time
from typing import Any, Awaitable, Callable

import logfire
import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from src.constants import (
    DEFAULT_CACHE_TTL_SECONDS,
    REDIS_CIRCUIT_COOLDOWN_SECONDS,
    REDIS_CIRCUIT_THRESHOLD,
)

# Bounded number of stale index members skipped when looking for the oldest key
_MAX_STALE_INDEX_SKIPS = 16


class RedisStore:
    """
    KeyValueStore implementation on a Redis server.

    Values use native Redis TTLs. Insertion order is tracked in a sorted set
    (``{namespace}:__index__``) scored by insertion time; members whose key
    already expired are pruned lazily, so ``size()`` is approximate.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        namespace: str,
        *,
        track_insertion: bool = True,
        index_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the store.

        Args:
            client: Async Redis client (decode_responses=True)
            namespace: Prefix applied to every key
            track_insertion: Maintain the insertion-order index (needed for eviction)
            index_ttl_seconds: Index members older than this are pruned on size()
            clock: Wall-clock function used for index scores
        """
        self._client = client
        self._namespace = namespace
        self._index_key = f"{namespace}:__index__"
        self._track_insertion = track_insertion
        self._index_ttl = index_ttl_seconds
        self._clock = clock
        self._consecutive_failures = 0
        self._circuit_open_until = 0.0

    @classmethod
    def from_url(cls, url: str, namespace: str, **kwargs: Any) -> "RedisStore":
        """Create a store with its own client for the given Redis URL."""
        client = aioredis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client, namespace, **kwargs)

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    def _is_circuit_open(self) -> bool:
        if self._consecutive_failures >= REDIS_CIRCUIT_THRESHOLD:
            if time.monotonic() < self._circuit_open_until:
                return True
            # Cooldown expired, allow one trial call
            self._consecutive_failures = 0
        return False

    def _record_failure(self, op_name: str, error: Exception) -> None:
        self._consecutive_failures += 1
        logfire.warn(
            "Redis operation failed (degraded)",
            operation=op_name,
            namespace=self._namespace,
            error=str(error),
            consecutive_failures=self._consecutive_failures,
        )
        if self._consecutive_failures >= REDIS_CIRCUIT_THRESHOLD:
            self._circuit_open_until = time.monotonic() + REDIS_CIRCUIT_COOLDOWN_SECONDS
            logfire.warn(
                "Redis circuit breaker open",
                namespace=self._namespace,
                cooldown_seconds=REDIS_CIRCUIT_COOLDOWN_SECONDS,
            )

    async def _safe_op(
        self,
        op_name: str,
        coro_func: Callable[..., Awaitable[Any]],
        *args: Any,
        default: Any = None,
        **kwargs: Any,
    ) -> Any:
        """Run a Redis call, returning ``default`` on connection problems."""
        if self._is_circuit_open():
            return default
        try:
            result = await coro_func(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            self._record_failure(op_name, e)
            return default
        self._consecutive_failures = 0
        return result

    async def get(self, key: str) -> str | None:
        return await self._safe_op("get", self._client.get, self._key(key))

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        full_key = self._key(key)
        await self._safe_op("set", self._client.set, full_key, value, ex=ttl_seconds)
        if self._track_insertion:
            await self._safe_op(
                "zadd", self._client.zadd, self._index_key, {full_key: self._clock()}
            )

    async def delete(self, key: str) -> None:
        full_key = self._key(key)
        await self._safe_op("delete", self._client.delete, full_key)
        if self._track_insertion:
            await self._safe_op("zrem", self._client.zrem, self._index_key, full_key)

    async def size(self) -> int:
        if not self._track_insertion:
            return 0
        await self._safe_op(
            "zremrangebyscore",
            self._client.zremrangebyscore,
            self._index_key,
            "-inf",
            self._clock() - self._index_ttl,
        )
        count = await self._safe_op(
            "zcard", self._client.zcard, self._index_key, default=0
        )
        return int(count or 0)

    async def oldest_key(self) -> str | None:
        if not self._track_insertion:
            return None
        prefix = f"{self._namespace}:"
        for _ in range(_MAX_STALE_INDEX_SKIPS):
            members = await self._safe_op(
                "zrange", self._client.zrange, self._index_key, 0, 0, default=[]
            )
            if not members:
                return None
            full_key = members[0]
            exists = await self._safe_op(
                "exists", self._client.exists, full_key, default=0
            )
            if exists:
                return full_key[len(prefix):]
            await self._safe_op("zrem", self._client.zrem, self._index_key, full_key)
        return None

    async def clear(self) -> None:
        keys = await self._safe_op(
            "keys", self._client.keys, f"{self._namespace}:*", default=[]
        )
        if keys:
            await self._safe_op("delete", self._client.delete, *keys)

    async def close(self) -> None:
        """Close the underlying client connection pool."""
        await self._client.aclose()
