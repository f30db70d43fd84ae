"""Stream event models decoded from the matchmaker event stream."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class StreamEvent(str, Enum):
    """Kinds of event carried by the stream."""

    BUNDLE = "bundle"
    TRANSACTION = "transaction"


@dataclass(frozen=True)
class EventTx:
    """One transaction descriptor inside a stream event."""

    to: str | None = None
    function_selector: str | None = None  # 4-byte selector, hex
    call_data: str | None = None


@dataclass(frozen=True)
class PendingTransaction:
    """A pending transaction shared by the matchmaker.

    ``mev_gas_price`` and ``gas_used`` are None when the service did not
    disclose them. ``gas_used`` is whatever the service sent (it rounds the
    value itself).
    """

    hash: str
    logs: list[dict[str, Any]] | None = None
    to: str | None = None
    function_selector: str | None = None
    call_data: str | None = None
    mev_gas_price: int | None = None
    gas_used: int | None = None

    @property
    def kind(self) -> StreamEvent:
        return StreamEvent.TRANSACTION


@dataclass(frozen=True)
class PendingBundle:
    """A pending bundle shared by the matchmaker."""

    hash: str
    logs: list[dict[str, Any]] | None = None
    txs: tuple[EventTx, ...] | None = None
    mev_gas_price: int | None = None
    gas_used: int | None = None

    @property
    def kind(self) -> StreamEvent:
        return StreamEvent.BUNDLE


PendingEvent = Union[PendingTransaction, PendingBundle]


@dataclass(frozen=True)
class SseMessage:
    """One raw Server-Sent Events message before decoding."""

    data: str
    event: str = "message"
    id: str | None = None
