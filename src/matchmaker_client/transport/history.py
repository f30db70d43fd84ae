"""Event history API client over httpx."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from matchmaker_client.errors import ResponseDecodeError, TransportError

log = logging.getLogger(__name__)


class HttpxHistoryTransport:
    """GETs JSON documents from the history endpoints beside the event stream."""

    def __init__(
        self,
        stream_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = stream_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.get(url, params=dict(params or {}))
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"history request {path} returned HTTP {exc.response.status_code}",
                code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"history request {path} failed: {exc}") from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise ResponseDecodeError(f"history request {path} returned non-JSON body") from exc
