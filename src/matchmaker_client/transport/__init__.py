"""httpx-backed transports for the matchmaker API, event stream and history."""

from matchmaker_client.transport.history import HttpxHistoryTransport
from matchmaker_client.transport.rpc import SIGNATURE_HEADER, HttpxRpcTransport
from matchmaker_client.transport.sse import HttpxStreamTransport, iter_sse

__all__ = [
    "HttpxHistoryTransport",
    "HttpxRpcTransport", "SIGNATURE_HEADER",
    "HttpxStreamTransport", "iter_sse",
]
