"""
Cache-aside serving pipeline for Paste Gateway.

State machine per read request:

    lookup ──hit──> served-from-cache
       │
      miss
       ▼
    miss-fetch ──> populate (detached) ──> served-from-origin

- The cache key uses the canonical URL (identifier only), so one stored object
  serves every extension and filename variant of the same identifier.
- On a hit the stored headers are reused, but content type and disposition
  are recomputed for the current request's suffix.
- A failed origin read produces a 404 that is cached exactly like content,
  under the same one-year lifetime (negative caching).
- Population is handed to a scheduler (FastAPI ``BackgroundTasks.add_task``
  in the app) and runs after the response is sent. Its failures are logged
  and never reach the client.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Set

from ..config import GatewayConfig
from ..manager.codec import IdentifierMatch
from ..manager.paths import content_disposition, resolve_content_type, to_storage_path
from ..storage.base import BaseObjectStore
from .base import BaseCacheStore, CacheKey, CachedResponse

log = logging.getLogger("paste_gateway.cache.gateway")

CACHE_CONTROL = "public, max-age=31536000"

SECURITY_HEADERS = {
    "strict-transport-security": "max-age=31536000; includeSubDomains",
    "content-security-policy": "default-src 'none'; img-src 'self'; style-src 'self'",
    "referrer-policy": "no-referrer",
    "x-content-type-options": "nosniff",
    "x-frame-options": "DENY",
    "x-xss-protection": "1; mode=block",
    "vary": "Origin",
}

Scheduler = Callable[..., Any]

_detached: Set["asyncio.Task[Any]"] = set()


def detach(func: Callable[..., Awaitable[Any]], *args: Any) -> None:
    """Run a coroutine function in the background, keeping a reference until it ends."""
    task = asyncio.get_running_loop().create_task(func(*args))
    _detached.add(task)
    task.add_done_callback(_detached.discard)


class CacheGateway:
    """Serve identifiers from the response cache, falling back to the object store."""

    def __init__(self, object_store: BaseObjectStore, cache_store: BaseCacheStore):
        self.object_store = object_store
        self.cache_store = cache_store

    @staticmethod
    def cache_key(base_url: str, identifier: str, headers: Mapping[str, str]) -> CacheKey:
        return CacheKey.build(f"{base_url.rstrip('/')}/{identifier}", headers)

    @staticmethod
    def _base_headers(origin: Optional[str]) -> dict:
        headers = {"cache-control": CACHE_CONTROL}
        headers.update(SECURITY_HEADERS)
        if origin:
            headers["access-control-allow-origin"] = origin
        return headers

    async def serve(
        self,
        config: GatewayConfig,
        match: IdentifierMatch,
        *,
        base_url: str,
        headers: Mapping[str, str],
        schedule: Optional[Scheduler] = None,
    ) -> CachedResponse:
        """
        Return the response for a validated identifier.

        Args:
            config: Effective configuration for the request.
            match: Validated identifier and its optional suffix.
            base_url: ``scheme://host`` of the request, used in the cache key.
            headers: Original request headers.
            schedule: Callable taking ``(func, *args)`` that runs the cache
                write after the response; defaults to a detached task.
        """
        content_type, download_name = resolve_content_type(match)
        key = self.cache_key(base_url, match.identifier, headers)

        cached = await self.cache_store.get(key)
        if cached is not None:
            log.debug("cache hit! identifier=%s status=%s", match.identifier, cached.status_code)
            return self._from_cache(cached, content_type, download_name)

        log.debug("cache miss identifier=%s", match.identifier)
        response = await self._fetch_origin(
            config, match.identifier, content_type, download_name, headers.get("origin")
        )
        (schedule or detach)(self.populate, key, response.copy())
        return response

    @staticmethod
    def _from_cache(
        cached: CachedResponse, content_type: str, download_name: Optional[str]
    ) -> CachedResponse:
        headers = dict(cached.headers)
        headers.pop("content-disposition", None)
        headers["content-type"] = content_type
        if download_name:
            headers["content-disposition"] = content_disposition(download_name)
        return CachedResponse(status_code=cached.status_code, headers=headers, body=cached.body)

    async def _fetch_origin(
        self,
        config: GatewayConfig,
        identifier: str,
        content_type: str,
        download_name: Optional[str],
        origin: Optional[str],
    ) -> CachedResponse:
        result = await self.object_store.read_file(config, to_storage_path(identifier))
        headers = self._base_headers(origin)

        if not result.ok:
            log.info("origin miss identifier=%s status=%s", identifier, result.status_code)
            return CachedResponse(status_code=404, headers=headers)

        headers["content-type"] = content_type
        if download_name:
            headers["content-disposition"] = content_disposition(download_name)
        return CachedResponse(status_code=result.status_code, headers=headers, body=result.content)

    async def populate(self, key: CacheKey, response: CachedResponse) -> None:
        try:
            await self.cache_store.put(key, response)
        except Exception:
            log.warning("Cache population failed for %s", key.url, exc_info=True)
