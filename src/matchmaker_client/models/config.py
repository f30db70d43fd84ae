"""Configuration models for the client."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MatchmakerNetwork:
    """Endpoints of one matchmaker deployment."""

    chain_id: int
    name: str
    stream_url: str  # SSE event stream and history API
    api_url: str  # JSON-RPC endpoint for bundles and transactions


@dataclass
class StreamConfig:
    """Event stream reconnection policy."""

    reconnect_delay: float = 1.0  # seconds before the first retry
    max_reconnect_delay: float = 30.0
    max_reconnect_attempts: int | None = None  # None = retry forever
    read_timeout: float | None = None  # None = wait indefinitely for events


@dataclass
class ClientConfig:
    """Complete client configuration."""

    network: str = "mainnet"
    chain_id: int = 1
    stream_url: str = "https://mev-share.flashbots.net"
    api_url: str = "https://relay.flashbots.net"

    rpc_timeout: float = 30.0  # seconds, per JSON-RPC call
    log_level: str = "info"

    stream: StreamConfig = field(default_factory=StreamConfig)
