"""
Error types for Paste Gateway.

Every failure the gateway knows how to report carries an explicit HTTP status
and a short ``kind`` tag. Errors are raised where they are detected and caught
once by the dispatcher in ``main.py``, which turns them into status-only
responses (no body, no internals).

Taxonomy:
    - IdentifierValidationError -> 404 (malformed/forged identifier, unmatched path)
    - ConfigurationError        -> 500 (missing upload mapping, bad settings)
    - EmptyPayloadError         -> 400 (nothing left to commit)
    - UpstreamError             -> status reported by the object store
    - UnsupportedMethodError    -> 500
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for errors translated to a status-only HTTP response."""

    status_code: int = 500
    kind: str = "gateway_error"

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message or self.kind)
        if status_code is not None:
            self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, status_code={self.status_code})"


class IdentifierValidationError(GatewayError):
    status_code = 404
    kind = "validation"


class ConfigurationError(GatewayError):
    status_code = 500
    kind = "configuration"


class EmptyPayloadError(GatewayError):
    status_code = 400
    kind = "empty_payload"


class UpstreamError(GatewayError):
    """Object store (or other upstream) answered with a non-success status."""

    kind = "upstream"

    def __init__(self, status_code: int, message: str = ""):
        super().__init__(message or f"upstream returned {status_code}", status_code=status_code)


class UnsupportedMethodError(GatewayError):
    status_code = 500
    kind = "unsupported_method"
