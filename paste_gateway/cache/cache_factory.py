"""
Cache factory – switch response-cache backend from config (lazy env version)
===========================================================================

- Reads environment **at call time** to avoid stale values in tests.
- Imports the Postgres backend **only if** it is selected.

Environment variables
---------------------
- PASTE_CACHE_BACKEND: "memory" (default) or "postgres"
- PASTE_CACHE_DSN:     DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional

from .base import BaseCacheStore
from .cache import InMemoryCacheStore

log = logging.getLogger("paste_gateway.cache")


def get_cache_store(backend: Optional[str] = None, **kwargs) -> BaseCacheStore:
    """
    Return a cache store based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads PASTE_CACHE_BACKEND.
    kwargs : dict
        Extra args passed to the backend constructor. For postgres, use dsn="...".
    """
    be = (backend or os.getenv("PASTE_CACHE_BACKEND", "memory")).strip().lower()
    log.info("Selected cache backend: %r", be)

    if be == "memory":
        return InMemoryCacheStore()

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("PASTE_CACHE_DSN", "")
        if not dsn:
            raise ValueError("CACHE_DSN is required for postgres backend (env PASTE_CACHE_DSN)")
        # Local import to avoid loading psycopg when not using postgres
        from .db_cache import PostgresCacheStore
        return PostgresCacheStore(dsn=dsn)

    raise ValueError(f"Unknown cache backend: {be!r}")
