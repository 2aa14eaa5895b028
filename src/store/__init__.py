"""Key-value store layer backing the result cache and the rate limiter."""

from src.store.kv_store import InMemoryStore, KeyValueStore
from src.store.redis_store import RedisStore
from src.store.result_cache import CacheEntry, ResultCache

__all__ = [
    "InMemoryStore",
    "KeyValueStore",
    "RedisStore",
    "CacheEntry",
    "ResultCache",
]
