"""Transport protocols - the I/O collaborators the client calls out to."""

from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Mapping, Protocol

from matchmaker_client.models.events import SseMessage


class RpcTransport(Protocol):
    """Sends JSON-RPC requests to the matchmaker API."""

    async def call(self, method: str, params: list[Any]) -> Any:
        """Send one request and return the raw ``result`` member.

        Raises TransportError for transport failures and JSON-RPC error objects.
        """
        ...


class StreamTransport(Protocol):
    """Opens the matchmaker event stream."""

    def open(
        self,
        url: str,
        last_event_id: str | None = None,
        on_open: Callable[[], None] | None = None,
    ) -> AsyncIterator[SseMessage]:
        """Yield raw messages in arrival order until the connection ends.

        ``on_open`` is called once the server has accepted the connection,
        before any message arrives.

        Raises StreamConnectionError when the connection fails or drops.
        """
        ...

    async def close(self) -> None:
        """Release the current connection, if any."""
        ...


class HistoryTransport(Protocol):
    """Reads the event history API."""

    async def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """GET ``path`` relative to the stream URL and return the decoded JSON body."""
        ...
