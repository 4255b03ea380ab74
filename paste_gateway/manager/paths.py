"""
Path and content-type mapping for Paste Gateway.

Responsibilities:
    - Shard identifiers into storage paths: ``<id[0]>/<id[1]>/<id[2:]>``
      (fan-out is exactly charLen² directories, never a flat directory)
    - Build the served URL path for an upload (keep a registered extension)
    - Resolve content type and download filename for a request suffix
    - Sanitize free-form filename segments before they reach a header

The MIME registry is the interpreter's built-in table (``mimetypes.MimeTypes()``
without system files), so lookups do not depend on the host's /etc/mime.types.
"""

import mimetypes
import re
import unicodedata
from typing import Optional, Tuple

from .codec import IdentifierMatch

DEFAULT_BINARY_TYPE = "application/octet-stream"
DEFAULT_TEXT_TYPE = "text/plain; charset=utf-8"

_REGISTRY = mimetypes.MimeTypes()
_EXTENSION = re.compile(r"^[A-Za-z0-9]+$")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]")
_MAX_FILENAME = 255


def to_storage_path(identifier: str) -> str:
    """Return the sharded object-store path for an identifier."""
    return f"{identifier[0]}/{identifier[1]}/{identifier[2:]}"


def lookup_extension(extension: str) -> Optional[str]:
    """Return the registered MIME type for an extension (no dot), or None."""
    mime_type, _ = _REGISTRY.guess_type(f"file.{extension.lower()}", strict=False)
    return mime_type


def is_registered_extension(extension: str) -> bool:
    return bool(extension) and bool(_EXTENSION.match(extension)) and lookup_extension(extension) is not None


# Non-text types that are UTF-8 text on the wire.
_UTF8_APPLICATION_TYPES = frozenset(
    {"application/json", "application/javascript", "application/x-javascript", "application/manifest+json"}
)


def _with_charset(mime_type: str) -> str:
    if "charset" in mime_type:
        return mime_type
    if mime_type.startswith("text/") or mime_type in _UTF8_APPLICATION_TYPES:
        return f"{mime_type}; charset=utf-8"
    return mime_type


def to_served_path(identifier: str, filename: Optional[str] = None) -> str:
    """
    Return the URL path under which an upload is served.

    ``/<identifier>.<ext>`` when ``filename`` ends in a registered extension,
    otherwise the bare ``/<identifier>``.
    """
    name = filename or ""
    dot = name.rfind(".")
    ext = name[dot + 1:] if dot >= 0 else ""
    if is_registered_extension(ext):
        return f"/{identifier}.{ext}"
    return f"/{identifier}"


def sanitize_filename(name: str) -> Optional[str]:
    """
    Reduce a user-supplied filename to something safe for Content-Disposition.

    Directory parts and control characters are dropped, characters outside
    ``[A-Za-z0-9._ -]`` become ``_``, leading dots are stripped. Returns None
    when nothing usable remains.
    """
    base = re.split(r"[\\/]", name)[-1]
    base = "".join(ch for ch in base if unicodedata.category(ch)[0] != "C")
    base = _UNSAFE_FILENAME_CHARS.sub("_", base).strip().lstrip(".").strip()
    base = base[:_MAX_FILENAME]
    return base or None


def resolve_content_type(match: IdentifierMatch) -> Tuple[str, Optional[str]]:
    """
    Return ``(content_type, download_name)`` for a validated request path.

    - ``/<id>.<ext>``: registry lookup, unregistered extensions fall back to
      the generic binary type.
    - ``/<id>``: plain text.
    - ``/<id>/<filename>``: the sanitized filename becomes the download name
      and the content type is the generic binary type. The extension of the
      filename is not used; the segment only names the download.
    """
    if match.extension:
        mime_type = lookup_extension(match.extension)
        return (_with_charset(mime_type) if mime_type else DEFAULT_BINARY_TYPE), None
    if match.filename:
        return DEFAULT_BINARY_TYPE, sanitize_filename(match.filename)
    return DEFAULT_TEXT_TYPE, None


def content_disposition(download_name: str) -> str:
    return f'attachment; filename="{download_name}"'
