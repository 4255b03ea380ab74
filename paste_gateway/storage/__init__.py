"""Object-store backends for Paste Gateway."""

from .base import BaseObjectStore, StoreResponse, UploadAction
from .gitlab_storage import GitLabObjectStore
from .storage import InMemoryObjectStore
from .storage_factory import get_object_store

__all__ = [
    "BaseObjectStore",
    "StoreResponse",
    "UploadAction",
    "GitLabObjectStore",
    "InMemoryObjectStore",
    "get_object_store",
]
