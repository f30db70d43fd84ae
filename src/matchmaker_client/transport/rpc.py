"""JSON-RPC transport over httpx."""

from __future__ import annotations

import itertools
import json
import logging
from typing import Any

import httpx

from matchmaker_client.errors import ResponseDecodeError, TransportError
from matchmaker_client.interfaces.signer import PayloadSigner

log = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Flashbots-Signature"


class HttpxRpcTransport:
    """Posts JSON-RPC 2.0 requests to the matchmaker API.

    Each call opens its own client, so calls are independent and may run
    concurrently; request ids come from a per-transport counter. No retries
    are made here.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 30.0,
        signer: PayloadSigner | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = api_url
        self._timeout = timeout
        self._signer = signer
        self._transport = transport
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self._url

    async def call(self, method: str, params: list[Any]) -> Any:
        request_id = next(self._ids)
        body = json.dumps(
            {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params},
            separators=(",", ":"),
        ).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self._signer is not None:
            headers[SIGNATURE_HEADER] = self._signer.sign(body)

        log.debug("RPC %s id=%d -> %s", method, request_id, self._url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.post(self._url, content=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise TransportError(f"{method} timed out after {self._timeout}s") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} request failed: {exc}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransportError(
                f"{method} returned HTTP {resp.status_code} with non-JSON body: {resp.text[:200]}",
                code=resp.status_code,
            ) from exc

        if isinstance(data, dict) and data.get("error") is not None:
            error = data["error"]
            if isinstance(error, dict):
                message = error.get("message", "unknown error")
                log.warning("RPC %s rejected: %s", method, message)
                raise TransportError(
                    f"{method} rejected: {message}",
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise TransportError(f"{method} rejected: {error}")

        if resp.status_code >= 400:
            raise TransportError(
                f"{method} returned HTTP {resp.status_code}: {resp.text[:200]}",
                code=resp.status_code,
            )

        if not isinstance(data, dict) or "result" not in data:
            raise ResponseDecodeError(f"{method} response has no result member")
        if data.get("id") != request_id:
            raise ResponseDecodeError(
                f"{method} response id {data.get('id')!r} does not match request id {request_id}"
            )
        return data["result"]
