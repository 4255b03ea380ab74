"""
Object-store factory: switch backend from config (lazy env version)
==================================================================

Centralizes selection of the object-store backend so the upload and serving
code never needs to know where files live.

- Reads environment **at call time** to avoid stale values in tests.

Environment variables
---------------------
- PASTE_STORAGE_BACKEND: "gitlab" (default) or "memory"
- PASTE_GITLAB_API:      GitLab API root if backend=="gitlab"
"""

import logging
import os
from typing import Optional

from .base import BaseObjectStore
from .gitlab_storage import GitLabObjectStore
from .storage import InMemoryObjectStore

log = logging.getLogger("paste_gateway.storage")


def get_object_store(backend: Optional[str] = None, **kwargs) -> BaseObjectStore:
    """
    Return an object store based on configuration.

    Parameters
    ----------
    backend : str, optional
        "gitlab" (default) or "memory". If omitted, reads PASTE_STORAGE_BACKEND.
    kwargs : dict
        Extra args passed to the backend constructor. For gitlab, use api_url="..."
        or transport=....
    """
    be = (backend or os.getenv("PASTE_STORAGE_BACKEND", "gitlab")).strip().lower()
    log.info("Selected object-store backend: %r", be)

    if be == "memory":
        return InMemoryObjectStore()

    if be == "gitlab":
        api_url = kwargs.get("api_url") or os.getenv("PASTE_GITLAB_API", "https://gitlab.com/api/v4")
        return GitLabObjectStore(api_url=api_url, transport=kwargs.get("transport"))

    raise ValueError(f"Unknown storage backend: {be!r}")
