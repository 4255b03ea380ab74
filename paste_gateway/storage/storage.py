"""
In-memory object store for Paste Gateway.

Responsibilities:
    - Keep committed files per (project, branch)
    - Apply commits atomically: a batch touching an existing path is rejected
      and writes nothing (mirrors the ``create`` action of the commits API)
    - Decode base64-encoded actions so reads return the original bytes
    - Record commits and reads so tests can assert on origin traffic

Design:
    Reference implementation of BaseObjectStore for local runs and tests.
    For production, use the GitLab backend (see ``gitlab_storage.py``).
"""

import base64
import binascii
from typing import Dict, List, Tuple

from ..config import GatewayConfig
from .base import BaseObjectStore, StoreResponse, UploadAction


class InMemoryObjectStore(BaseObjectStore):
    def __init__(self):
        """
        Initialize empty storage.

        Internal schema:
            self.files = {
                (project, branch): {file_path: bytes}
            }
            self.commits = [
                {"project": str, "branch": str, "message": str, "actions": [UploadAction]}
            ]
            self.reads = [file_path, ...]
        """
        self.files: Dict[Tuple[str, str], Dict[str, bytes]] = {}
        self.commits: List[Dict] = []
        self.reads: List[str] = []

    def _tree(self, config: GatewayConfig) -> Dict[str, bytes]:
        return self.files.setdefault((config.project, config.branch), {})

    async def read_file(self, config: GatewayConfig, path: str) -> StoreResponse:
        self.reads.append(path)
        content = self._tree(config).get(path)
        if content is None:
            return StoreResponse(status_code=404)
        return StoreResponse(status_code=200, content=content)

    async def create_commit(
        self, config: GatewayConfig, actions: List[UploadAction], message: str
    ) -> StoreResponse:
        if not actions:
            return StoreResponse(status_code=400)

        tree = self._tree(config)
        staged: Dict[str, bytes] = {}
        for action in actions:
            if action.path in tree or action.path in staged:
                # A file with this name already exists
                return StoreResponse(status_code=400)
            try:
                staged[action.path] = _decode(action)
            except (binascii.Error, ValueError):
                return StoreResponse(status_code=400)

        tree.update(staged)
        self.commits.append(
            {
                "project": config.project,
                "branch": config.branch,
                "message": message,
                "actions": list(actions),
            }
        )
        return StoreResponse(status_code=201)


def _decode(action: UploadAction) -> bytes:
    if action.encoding == "base64":
        return base64.b64decode(action.content)
    return action.content.encode("utf-8")
