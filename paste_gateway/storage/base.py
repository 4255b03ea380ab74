"""
Base object-store interface for Paste Gateway.

Purpose:
    Define the two operations the gateway needs from a version-controlled
    blob repository so that backends (GitLab, in-memory) can be swapped
    without touching upload or serving logic:

    - read the raw file at a path
    - create several files in one atomic commit

Both operations take the effective per-request configuration, because the
project, branch and token can differ per host.

Testing & Coverage:
    Abstract methods are marked ``# pragma: no cover``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config import GatewayConfig


@dataclass(frozen=True)
class StoreResponse:
    """Status and body returned by an object-store call."""

    status_code: int
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class UploadAction:
    """One file creation inside a commit."""

    path: str
    content: str
    encoding: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Render the action in the commits API format."""
        payload: Dict[str, Any] = {"action": "create", "file_path": self.path, "content": self.content}
        if self.encoding:
            payload["encoding"] = self.encoding
        return payload


class BaseObjectStore(ABC):
    """Abstract base class for object-store backends."""

    @abstractmethod  # pragma: no cover
    async def read_file(self, config: GatewayConfig, path: str) -> StoreResponse:
        """
        Fetch the raw bytes stored at ``path``.

        Returns:
            StoreResponse: 2xx with the content, or the store's failure status.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    async def create_commit(
        self, config: GatewayConfig, actions: List[UploadAction], message: str
    ) -> StoreResponse:
        """
        Create every action in a single commit: all land, or none do.

        Returns:
            StoreResponse: The store's status for the commit.
        """
        raise NotImplementedError
