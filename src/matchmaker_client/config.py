"""Configuration loading: TOML file + environment variables + network presets."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from matchmaker_client.models.config import ClientConfig, MatchmakerNetwork, StreamConfig

SUPPORTED_NETWORKS: dict[str, MatchmakerNetwork] = {
    "mainnet": MatchmakerNetwork(
        chain_id=1,
        name="mainnet",
        stream_url="https://mev-share.flashbots.net",
        api_url="https://relay.flashbots.net",
    ),
    "goerli": MatchmakerNetwork(
        chain_id=5,
        name="goerli",
        stream_url="https://mev-share-goerli.flashbots.net",
        api_url="https://relay-goerli.flashbots.net",
    ),
}


def network_by_chain_id(chain_id: int) -> MatchmakerNetwork | None:
    for net in SUPPORTED_NETWORKS.values():
        if net.chain_id == chain_id:
            return net
    return None


def _apply_network(cfg: ClientConfig, name: str) -> None:
    net = SUPPORTED_NETWORKS.get(name)
    if net is None:
        raise ValueError(
            f"unknown network {name!r} (known: {', '.join(sorted(SUPPORTED_NETWORKS))})"
        )
    cfg.network = net.name
    cfg.chain_id = net.chain_id
    cfg.stream_url = net.stream_url
    cfg.api_url = net.api_url


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "MATCHMAKER_",
) -> ClientConfig:
    """Load client configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (MATCHMAKER_NETWORK, MATCHMAKER_API_URL, etc.)
        2. TOML config file (explicit URLs beat the network preset)
        3. Defaults from ClientConfig (mainnet)
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = ClientConfig()

    # ── Network section ────────────────────────────────────
    network = raw.get("network", {})
    if name := network.get("name"):
        _apply_network(cfg, str(name))
    elif chain_id := network.get("chain_id"):
        net = network_by_chain_id(int(chain_id))
        if net is None:
            raise ValueError(f"no matchmaker preset for chain id {chain_id}")
        _apply_network(cfg, net.name)
    if v := network.get("stream_url"):
        cfg.stream_url = str(v)
    if v := network.get("api_url"):
        cfg.api_url = str(v)

    # ── RPC section ────────────────────────────────────────
    rpc = raw.get("rpc", {})
    if v := rpc.get("timeout"):
        cfg.rpc_timeout = float(v)

    # ── Stream section ─────────────────────────────────────
    stream_raw = raw.get("stream", {})
    max_attempts = stream_raw.get("max_reconnect_attempts")
    read_timeout = stream_raw.get("read_timeout")
    cfg.stream = StreamConfig(
        reconnect_delay=float(stream_raw.get("reconnect_delay", 1.0)),
        max_reconnect_delay=float(stream_raw.get("max_reconnect_delay", 30.0)),
        max_reconnect_attempts=int(max_attempts) if max_attempts is not None else None,
        read_timeout=float(read_timeout) if read_timeout is not None else None,
    )

    # ── Logging section ────────────────────────────────────
    logging_raw = raw.get("logging", {})
    if v := logging_raw.get("level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    if net_env := os.environ.get(f"{env_prefix}NETWORK"):
        _apply_network(cfg, net_env)
    if stream_url := os.environ.get(f"{env_prefix}STREAM_URL"):
        cfg.stream_url = stream_url
    if api_url := os.environ.get(f"{env_prefix}API_URL"):
        cfg.api_url = api_url
    if timeout := os.environ.get(f"{env_prefix}RPC_TIMEOUT"):
        cfg.rpc_timeout = float(timeout)
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level

    return cfg
