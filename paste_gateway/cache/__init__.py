"""Response cache and cache-aside serving for Paste Gateway."""

from .base import BaseCacheStore, CacheKey, CachedResponse
from .cache import InMemoryCacheStore
from .cache_factory import get_cache_store
from .gateway import CacheGateway

__all__ = [
    "BaseCacheStore",
    "CacheKey",
    "CachedResponse",
    "InMemoryCacheStore",
    "get_cache_store",
    "CacheGateway",
]
