"""Identifier, path, upload and shortener logic for Paste Gateway."""

from .codec import IdentifierCodec, IdentifierMatch
from .shortener import ShortenerClient, ShortenResult
from .upload_manager import UploadEntry, UploadManager, UploadResult

__all__ = [
    "IdentifierCodec",
    "IdentifierMatch",
    "ShortenerClient",
    "ShortenResult",
    "UploadEntry",
    "UploadManager",
    "UploadResult",
]
