"""Decoded RPC results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from matchmaker_client.models.events import PendingBundle, PendingTransaction


@dataclass(frozen=True)
class SendBundleResult:
    """Result of ``mev_sendBundle``. The service reports nothing further."""

    bundle_hash: str


@dataclass(frozen=True)
class SimBundleResult:
    """Result of ``mev_simBundle``.

    A failed simulation is a normal result (``success`` False, ``error`` set),
    not an exception.
    """

    success: bool
    state_block: int
    mev_gas_price: int  # wei per gas
    profit: int  # wei
    refundable_value: int  # wei
    gas_used: int
    error: str | None = None
    logs: list[dict[str, Any]] | None = None  # txLogs / bundleLogs tree, verbatim


@dataclass(frozen=True)
class EventHistoryInfo:
    """Range of stored stream events served by the history API."""

    count: int
    min_block: int
    max_block: int
    min_timestamp: int
    max_timestamp: int
    max_limit: int


@dataclass(frozen=True)
class EventHistoryParams:
    """Query window for the history API. Unset bounds are not sent."""

    block_start: int | None = None
    block_end: int | None = None
    timestamp_start: int | None = None
    timestamp_end: int | None = None
    limit: int | None = None
    offset: int | None = None


@dataclass(frozen=True)
class EventHistoryEntry:
    """A past stream event together with the block it landed in."""

    block: int
    timestamp: int
    hint: PendingTransaction | PendingBundle
