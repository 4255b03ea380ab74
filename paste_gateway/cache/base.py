"""
Abstract base for response-cache backends.

Responsibilities:
    - Define the key a response is stored under (CacheKey)
    - Define the stored value (CachedResponse: status, headers, body)
    - Define the get/put contract every backend implements (in-memory, Postgres)

A CacheKey carries the canonical URL (identifier only, no extension or
filename) and the request headers. Only the headers the cached response varies
on take part in matching, the same way an HTTP cache treats ``Vary``.
"""

import hashlib
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

__all__ = ["BaseCacheStore", "CacheKey", "CachedResponse", "VARY_HEADERS"]

# Responses echo the request Origin in Access-Control-Allow-Origin.
VARY_HEADERS: Tuple[str, ...] = ("origin",)

_MAX_AGE = re.compile(r"max-age=(\d+)")


@dataclass(frozen=True)
class CacheKey:
    url: str
    headers: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def build(cls, url: str, headers: Mapping[str, str]) -> "CacheKey":
        normalized = tuple(sorted((k.lower(), v) for k, v in headers.items()))
        return cls(url=url, headers=normalized)

    @property
    def vary_values(self) -> Tuple[Tuple[str, str], ...]:
        return tuple((name, value) for name, value in self.headers if name in VARY_HEADERS)

    @property
    def fingerprint(self) -> str:
        """Stable string identifying the cache slot for this key."""
        parts = [self.url] + [f"{name}:{value}" for name, value in self.vary_values]
        return hashlib.sha256("\n".join(parts).encode("utf-8")).hexdigest()


@dataclass
class CachedResponse:
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def copy(self) -> "CachedResponse":
        return CachedResponse(status_code=self.status_code, headers=dict(self.headers), body=self.body)

    @property
    def max_age(self) -> Optional[int]:
        """Seconds from the ``cache-control`` max-age directive, if any."""
        match = _MAX_AGE.search(self.headers.get("cache-control", ""))
        return int(match.group(1)) if match else None


class BaseCacheStore(ABC):
    """Abstract base for pluggable response caches."""

    @abstractmethod
    async def get(self, key: CacheKey) -> Optional[CachedResponse]:  # pragma: no cover
        """
        Return the response stored for ``key``, or None on a miss.

        Expired entries count as misses.
        """
        raise NotImplementedError

    @abstractmethod
    async def put(self, key: CacheKey, response: CachedResponse) -> None:  # pragma: no cover
        """
        Store ``response`` under ``key``, replacing any previous entry.

        The entry lives for the response's max-age.
        """
        raise NotImplementedError
