"""HTTP client used by ``http/get`` and ``http/post`` actions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class HttpxClient:
    """Async HTTP client; errors surface as ``httpx.HTTPError``."""

    def __init__(
        self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        self.timeout = timeout
        self._transport = transport

    async def get(self, url: str, headers: Dict[str, str] | None = None) -> Any:
        return await self._request("GET", url, headers=headers)

    async def post(
        self, url: str, headers: Dict[str, str] | None = None, body: Any = None
    ) -> Any:
        return await self._request("POST", url, headers=headers, json=body)

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.request(method, url, **kwargs)
        logger.debug(f"{method} {url} -> {response.status_code}")
        response.raise_for_status()
        if response.headers.get("content-type", "").startswith("application/json"):
            return response.json()
        return {"status": response.status_code, "body": response.text}
