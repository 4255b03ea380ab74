"""
Delegated link shortener.

Prefixes mapped to the ``shortener`` endpoint mode do not store anything:
the request body is forwarded as JSON to an external shortening API with an
``Authorization: API-Key <key>`` header. A 200 answer carries the short link
at ``data.link``; any other status is passed back with no body.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..config import ShortenerConfig

log = logging.getLogger("paste_gateway.shortener")


@dataclass(frozen=True)
class ShortenResult:
    status_code: int
    link: Optional[str] = None


class ShortenerClient:
    """Forward shortening requests to the configured external API."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def shorten(self, target: ShortenerConfig, body: Dict[str, Any]) -> ShortenResult:
        headers = {
            "content-type": "application/json",
            "Authorization": f"API-Key {target.apikey}",
        }
        async with httpx.AsyncClient(transport=self.transport) as client:
            resp = await client.post(target.api, json=body, headers=headers)

        if resp.status_code != 200:
            log.info("Shortener answered %s", resp.status_code)
            return ShortenResult(status_code=resp.status_code)

        data = resp.json()
        log.debug("Shortener response: %s", data)
        return ShortenResult(status_code=200, link=data["data"]["link"])
