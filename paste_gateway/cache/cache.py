"""
In-memory response cache for Paste Gateway.

Responsibilities:
    - Store full responses by cache-key fingerprint
    - Expire entries after the max-age of their cache-control header
    - Count gets and puts so tests can observe cache traffic

Attributes:
    entries (Dict[str, Tuple[float | None, CachedResponse]]): fingerprint -> (expires_at, response)
"""

import time
from typing import Callable, Dict, Optional, Tuple

from .base import BaseCacheStore, CacheKey, CachedResponse


class InMemoryCacheStore(BaseCacheStore):
    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Initialize an empty cache.

        Args:
            clock: Seconds since the epoch; injectable to test expiry.
        """
        self.clock = clock
        self.entries: Dict[str, Tuple[Optional[float], CachedResponse]] = {}
        self.gets = 0
        self.puts = 0

    async def get(self, key: CacheKey) -> Optional[CachedResponse]:
        self.gets += 1
        entry = self.entries.get(key.fingerprint)
        if entry is None:
            return None
        expires_at, response = entry
        if expires_at is not None and expires_at <= self.clock():
            del self.entries[key.fingerprint]
            return None
        return response.copy()

    async def put(self, key: CacheKey, response: CachedResponse) -> None:
        self.puts += 1
        max_age = response.max_age
        expires_at = self.clock() + max_age if max_age is not None else None
        self.entries[key.fingerprint] = (expires_at, response.copy())
