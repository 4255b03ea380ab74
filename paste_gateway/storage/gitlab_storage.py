"""
GitLab-backed object store for Paste Gateway
============================================

Stores uploads as files in a GitLab repository through the REST API v4:

- read:   GET  {api}/projects/{project}/repository/files/{path}/raw?ref={branch}
- commit: POST {api}/projects/{project}/repository/commits

Every request authenticates with the ``PRIVATE-TOKEN`` header. Project, branch
and token come from the effective per-request configuration, so one process
can serve several repositories through host overrides.

A commit is GitLab's unit of atomicity: either every ``create`` action lands
or the whole request fails (e.g. 400 when one file already exists).

Connections
-----------
A short-lived ``httpx.AsyncClient`` is opened per call. No retries and no
timeout beyond httpx defaults; failures surface to the caller as the status
GitLab returned. Pass ``transport=httpx.MockTransport(...)`` in tests.
"""

import logging
from typing import List, Optional
from urllib.parse import quote

import httpx

from ..config import GatewayConfig
from .base import BaseObjectStore, StoreResponse, UploadAction

log = logging.getLogger("paste_gateway.storage.gitlab")


class GitLabObjectStore(BaseObjectStore):
    """GitLab repository files/commits implementation of BaseObjectStore.

    Parameters
    ----------
    api_url : str
        API root, e.g. "https://gitlab.com/api/v4".
    transport : httpx.AsyncBaseTransport, optional
        Custom transport (tests use ``httpx.MockTransport``).
    """

    def __init__(self, api_url: str = "https://gitlab.com/api/v4", transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_url = api_url.rstrip("/")
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    def _project_url(self, config: GatewayConfig) -> str:
        return f"{self.api_url}/projects/{quote(config.project, safe='')}"

    @staticmethod
    def _headers(config: GatewayConfig) -> dict:
        return {"Content-Type": "application/json", "PRIVATE-TOKEN": config.token}

    async def read_file(self, config: GatewayConfig, path: str) -> StoreResponse:
        url = f"{self._project_url(config)}/repository/files/{quote(path, safe='')}/raw"
        log.debug("Reading %s from project=%s branch=%s", path, config.project, config.branch)
        async with self._client() as client:
            resp = await client.get(url, params={"ref": config.branch}, headers=self._headers(config))
        if resp.is_success:
            return StoreResponse(status_code=resp.status_code, content=resp.content)
        log.info("GitLab read of %s failed with status %s", path, resp.status_code)
        return StoreResponse(status_code=resp.status_code)

    async def create_commit(
        self, config: GatewayConfig, actions: List[UploadAction], message: str
    ) -> StoreResponse:
        url = f"{self._project_url(config)}/repository/commits"
        data = {
            "branch": config.branch,
            "commit_message": message,
            "actions": [action.to_payload() for action in actions],
        }
        async with self._client() as client:
            resp = await client.post(url, json=data, headers=self._headers(config))
        if resp.is_success:
            log.info("Committed %d file(s) to project=%s branch=%s", len(actions), config.project, config.branch)
        else:
            log.warning("GitLab commit failed with status %s", resp.status_code)
        return StoreResponse(status_code=resp.status_code, content=resp.content)
