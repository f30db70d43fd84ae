"""Exception hierarchy for the matchmaker client."""

from __future__ import annotations

from typing import Any


class MatchmakerError(Exception):
    """Base class for every error raised by matchmaker_client."""


class MalformedNumericField(MatchmakerError, ValueError):
    """A wire value could not be parsed (or encoded) as the declared numeric form."""

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class InvalidBundleShape(MatchmakerError, ValueError):
    """Local structural validation of a bundle failed. Nothing was sent."""

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class TransportError(MatchmakerError):
    """An RPC or HTTP call failed at the transport layer or returned an error object."""

    def __init__(
        self,
        message: str,
        code: int | None = None,
        data: Any = None,
    ) -> None:
        self.code = code
        self.data = data
        super().__init__(message)


class ResponseDecodeError(MatchmakerError):
    """An RPC response did not have the shape the decoder expects."""


class StreamDecodeError(MatchmakerError):
    """A single streamed event could not be decoded. The stream stays open."""

    def __init__(self, message: str, raw: Any = None) -> None:
        self.raw = raw
        super().__init__(message)


class StreamConnectionError(MatchmakerError):
    """The event stream connection dropped or could not be established."""
