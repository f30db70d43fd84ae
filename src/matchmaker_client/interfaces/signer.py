"""PayloadSigner protocol - authenticates JSON-RPC request bodies."""

from __future__ import annotations

from typing import Protocol


class PayloadSigner(Protocol):
    """Produces the ``X-Flashbots-Signature`` header value for a request body."""

    def sign(self, body: bytes) -> str:
        """Return ``"<address>:<signature>"`` for the exact bytes being sent."""
        ...
