"""Server-Sent Events transport over httpx."""

from __future__ import annotations

import logging
from typing import AsyncIterator, Callable

import httpx

from matchmaker_client.errors import StreamConnectionError
from matchmaker_client.models.events import SseMessage

log = logging.getLogger(__name__)


async def iter_sse(lines: AsyncIterator[str]) -> AsyncIterator[SseMessage]:
    """Group raw SSE lines into messages.

    A blank line ends a message. ``data`` lines are joined with newlines,
    comments (``:``) and ``retry`` are ignored, and a message that is not
    terminated before the stream ends is discarded.
    """
    data: list[str] = []
    event = ""
    event_id: str | None = None
    async for line in lines:
        if not line:
            if data:
                yield SseMessage(data="\n".join(data), event=event or "message", id=event_id)
            data = []
            event = ""
            event_id = None
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            data.append(value)
        elif name == "event":
            event = value
        elif name == "id":
            if "\0" not in value:
                event_id = value


class HttpxStreamTransport:
    """Opens the matchmaker SSE stream and yields raw messages."""

    def __init__(
        self,
        read_timeout: float | None = None,
        connect_timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(connect_timeout, read=read_timeout)
        self._transport = transport
        self._response: httpx.Response | None = None

    async def open(
        self,
        url: str,
        last_event_id: str | None = None,
        on_open: Callable[[], None] | None = None,
    ) -> AsyncIterator[SseMessage]:
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        if last_event_id:
            headers["Last-Event-ID"] = last_event_id
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                async with client.stream("GET", url, headers=headers) as resp:
                    resp.raise_for_status()
                    self._response = resp
                    log.info("Event stream connected: %s", url)
                    if on_open is not None:
                        on_open()
                    async for message in iter_sse(resp.aiter_lines()):
                        yield message
        except httpx.HTTPStatusError as exc:
            raise StreamConnectionError(
                f"event stream returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise StreamConnectionError(f"event stream connection lost: {exc}") from exc
        finally:
            self._response = None

    async def close(self) -> None:
        resp, self._response = self._response, None
        if resp is not None:
            await resp.aclose()
