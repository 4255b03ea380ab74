"""
UploadManager module for Paste Gateway.

Responsibilities:
    - Mint one identifier per uploaded item
    - Turn items into commit actions on sharded storage paths
    - Drop empty items, reject batches with nothing left
    - Submit the whole batch as one atomic commit
    - Produce client-facing URLs in submission order

Content rules:
    - Text form fields are committed as-is (no encoding).
    - Binary parts in ``plain`` mode are base64-encoded here.
    - Binary parts in ``base64`` mode are already base64 text from the client
      and are committed verbatim.
    Binary parts are always sent with ``encoding: base64``.

Design notes:
    - The object store is an injected dependency; identifiers come from an
      IdentifierCodec built for the request's effective configuration.
    - A batch either fully commits or fully fails; a store failure surfaces as
      UpstreamError carrying the store's status code.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union
from urllib.parse import quote, urljoin

from ..config import EndpointMode, GatewayConfig
from ..errors import EmptyPayloadError, UpstreamError
from ..storage.base import BaseObjectStore, StoreResponse, UploadAction
from .codec import IdentifierCodec
from .paths import to_served_path, to_storage_path

log = logging.getLogger("paste_gateway.uploads")

CodecFactory = Callable[[GatewayConfig], IdentifierCodec]


@dataclass(frozen=True)
class UploadEntry:
    """One item of an upload: a form field (text) or a file part (bytes)."""

    name: str
    content: Union[str, bytes]
    filename: Optional[str] = None

    @property
    def served_name(self) -> str:
        return self.filename or self.name or ""


@dataclass(frozen=True)
class UploadResult:
    urls: List[str]
    status_code: int

    @property
    def body(self) -> str:
        return "\n".join(self.urls)


class UploadManager:
    """
    Coordinates identifier minting, commit actions and served URLs.
    """

    def __init__(self, object_store: BaseObjectStore, codec_factory: CodecFactory = IdentifierCodec):
        """
        Args:
            object_store (BaseObjectStore): Backend receiving the commits.
            codec_factory (CodecFactory): Builds an IdentifierCodec for a config
                (tests inject seeded codecs).
        """
        self.object_store = object_store
        self.codec_factory = codec_factory

    @staticmethod
    def build_action(identifier: str, content: Union[str, bytes], mode: EndpointMode) -> UploadAction:
        """Build the create action for one item at the identifier's sharded path."""
        path = to_storage_path(identifier)
        if isinstance(content, str):
            return UploadAction(path=path, content=content)
        if mode == EndpointMode.BASE64:
            text = content.decode("utf-8", errors="replace")
        else:
            text = base64.b64encode(content).decode("ascii")
        return UploadAction(path=path, content=text, encoding="base64")

    async def _commit(
        self, config: GatewayConfig, actions: List[UploadAction], message: str
    ) -> StoreResponse:
        resp = await self.object_store.create_commit(config, actions, message)
        if not resp.ok:
            raise UpstreamError(resp.status_code)
        return resp

    async def handle_batch(
        self,
        config: GatewayConfig,
        entries: Iterable[UploadEntry],
        mode: EndpointMode,
        client_ip: Optional[str],
        base_url: str,
    ) -> UploadResult:
        """
        Commit every non-empty entry in one commit and return their URLs.

        Raises:
            EmptyPayloadError: If no entry has content.
            UpstreamError: If the object store rejects the commit.
        """
        codec = self.codec_factory(config)
        actions: List[UploadAction] = []
        urls: List[str] = []

        for entry in entries:
            identifier = codec.generate()
            action = self.build_action(identifier, entry.content, mode)
            if not action.content:
                continue
            actions.append(action)
            urls.append(urljoin(base_url, to_served_path(identifier, entry.served_name)))

        if not actions:
            raise EmptyPayloadError("no non-empty entries in upload")

        resp = await self._commit(config, actions, f"Created by {client_ip}")
        log.info("Uploaded %d item(s) for %s", len(actions), client_ip)
        return UploadResult(urls=urls, status_code=resp.status_code)

    async def handle_single(
        self,
        config: GatewayConfig,
        blob: bytes,
        mode: EndpointMode,
        client_ip: Optional[str],
        base_url: str,
        filename: Optional[str] = None,
    ) -> UploadResult:
        """
        Commit a raw request body and return its URL.

        A trailing filename is kept verbatim in the URL (``/<id>/<filename>``)
        and sanitized only when served; the storage path ignores it.
        """
        codec = self.codec_factory(config)
        identifier = codec.generate()
        action = self.build_action(identifier, blob, mode)
        if not action.content:
            raise EmptyPayloadError("empty request body")

        resp = await self._commit(config, [action], f"Uploaded by {client_ip}")

        if filename:
            served_path = f"/{identifier}/{quote(filename)}"
        else:
            served_path = to_served_path(identifier)
        log.info("Uploaded 1 item for %s", client_ip)
        return UploadResult(urls=[urljoin(base_url, served_path)], status_code=resp.status_code)
