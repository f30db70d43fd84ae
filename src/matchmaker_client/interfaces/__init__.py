"""Protocol interfaces for the matchmaker client collaborators."""

from matchmaker_client.interfaces.signer import PayloadSigner
from matchmaker_client.interfaces.transport import (
    HistoryTransport,
    RpcTransport,
    StreamTransport,
)

__all__ = [
    "PayloadSigner",
    "HistoryTransport", "RpcTransport", "StreamTransport",
]
