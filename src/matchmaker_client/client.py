"""Matchmaker client - wires codecs, transports and the subscription manager together."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from matchmaker_client.codec.bundle import (
    encode_bundle_params,
    encode_private_tx_params,
    encode_sim_options,
    parse_bundle_params,
)
from matchmaker_client.codec.responses import (
    decode_history_entry,
    decode_history_info,
    decode_send_bundle_response,
    decode_sim_bundle_response,
)
from matchmaker_client.errors import ResponseDecodeError
from matchmaker_client.interfaces.signer import PayloadSigner
from matchmaker_client.interfaces.transport import (
    HistoryTransport,
    RpcTransport,
    StreamTransport,
)
from matchmaker_client.models.bundles import BundleParams, SimBundleOptions, TransactionOptions
from matchmaker_client.models.config import ClientConfig
from matchmaker_client.models.events import StreamEvent
from matchmaker_client.models.results import (
    EventHistoryEntry,
    EventHistoryInfo,
    EventHistoryParams,
    SendBundleResult,
    SimBundleResult,
)
from matchmaker_client.stream.subscription import (
    ErrorHook,
    EventHandler,
    Subscription,
    SubscriptionManager,
)
from matchmaker_client.transport.history import HttpxHistoryTransport
from matchmaker_client.transport.rpc import HttpxRpcTransport
from matchmaker_client.transport.sse import HttpxStreamTransport

log = logging.getLogger(__name__)

HISTORY_INFO_PATH = "api/v1/history/info"
HISTORY_PATH = "api/v1/history"


def _as_bundle(params: BundleParams | Mapping[str, Any]) -> BundleParams:
    if isinstance(params, BundleParams):
        return params
    return parse_bundle_params(params)


class Matchmaker:
    """Client for a matchmaker: bundle/transaction submission, simulation,
    the live event stream and the event history API.

    Bundles may be given as BundleParams or as camelCase mappings; either way
    they are validated locally before anything is sent.
    """

    def __init__(
        self,
        rpc: RpcTransport,
        stream: StreamTransport,
        stream_url: str,
        history: HistoryTransport | None = None,
        max_bundle_depth: int | None = None,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
        max_reconnect_attempts: int | None = None,
        on_decode_error: ErrorHook | None = None,
        on_connection_error: ErrorHook | None = None,
    ) -> None:
        self._rpc = rpc
        self._history = history
        self._max_bundle_depth = max_bundle_depth
        self.subscriptions = SubscriptionManager(
            stream,
            stream_url,
            reconnect_delay=reconnect_delay,
            max_reconnect_delay=max_reconnect_delay,
            max_reconnect_attempts=max_reconnect_attempts,
            on_decode_error=on_decode_error,
            on_connection_error=on_connection_error,
        )

    @classmethod
    def from_config(
        cls,
        cfg: ClientConfig,
        signer: PayloadSigner | None = None,
        **kwargs: Any,
    ) -> Matchmaker:
        """Build a client with the httpx transports for ``cfg``'s endpoints."""
        return cls(
            rpc=HttpxRpcTransport(cfg.api_url, timeout=cfg.rpc_timeout, signer=signer),
            stream=HttpxStreamTransport(read_timeout=cfg.stream.read_timeout),
            stream_url=cfg.stream_url,
            history=HttpxHistoryTransport(cfg.stream_url, timeout=cfg.rpc_timeout),
            reconnect_delay=cfg.stream.reconnect_delay,
            max_reconnect_delay=cfg.stream.max_reconnect_delay,
            max_reconnect_attempts=cfg.stream.max_reconnect_attempts,
            **kwargs,
        )

    async def __aenter__(self) -> Matchmaker:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── RPC ───────────────────────────────────────────────

    async def send_bundle(self, params: BundleParams | Mapping[str, Any]) -> SendBundleResult:
        """Submit a bundle with ``mev_sendBundle``."""
        payload = encode_bundle_params(_as_bundle(params), max_depth=self._max_bundle_depth)
        raw = await self._rpc.call("mev_sendBundle", [payload])
        result = decode_send_bundle_response(raw)
        log.info("Bundle submitted: %s", result.bundle_hash)
        return result

    async def simulate_bundle(
        self,
        params: BundleParams | Mapping[str, Any],
        options: SimBundleOptions | None = None,
    ) -> SimBundleResult:
        """Simulate a bundle with ``mev_simBundle``.

        The simulation timeout in ``options`` is enforced by the service.
        A failed simulation comes back with ``success`` False.
        """
        payload = encode_bundle_params(_as_bundle(params), max_depth=self._max_bundle_depth)
        sim_params: list[Any] = [payload]
        if options is not None:
            sim_params.append(encode_sim_options(options))
        raw = await self._rpc.call("mev_simBundle", sim_params)
        result = decode_sim_bundle_response(raw)
        if not result.success:
            log.info("Bundle simulation failed at block %d: %s", result.state_block, result.error)
        return result

    async def send_transaction(
        self,
        signed_tx: str,
        options: TransactionOptions | None = None,
    ) -> str:
        """Submit a signed transaction with ``eth_sendPrivateTransaction``; returns its hash."""
        payload = encode_private_tx_params(signed_tx, options)
        raw = await self._rpc.call("eth_sendPrivateTransaction", [payload])
        if not isinstance(raw, str):
            raise ResponseDecodeError(
                f"eth_sendPrivateTransaction result must be a hash string, got {type(raw).__name__}"
            )
        log.info("Private transaction submitted: %s", raw)
        return raw

    # ── Event stream ──────────────────────────────────────

    async def subscribe(self, kind: StreamEvent | str, handler: EventHandler) -> Subscription:
        return await self.subscriptions.subscribe(kind, handler)

    async def unsubscribe(self, sub: Subscription) -> bool:
        return await self.subscriptions.unsubscribe(sub)

    async def close(self) -> None:
        await self.subscriptions.close()

    # ── Event history ─────────────────────────────────────

    def _require_history(self) -> HistoryTransport:
        if self._history is None:
            raise RuntimeError("no history transport configured")
        return self._history

    async def get_event_history_info(self) -> EventHistoryInfo:
        raw = await self._require_history().get(HISTORY_INFO_PATH)
        return decode_history_info(raw)

    async def get_event_history(
        self,
        params: EventHistoryParams | None = None,
    ) -> list[EventHistoryEntry]:
        params = params or EventHistoryParams()
        query = {
            wire: value for wire, value in (
                ("blockStart", params.block_start),
                ("blockEnd", params.block_end),
                ("timestampStart", params.timestamp_start),
                ("timestampEnd", params.timestamp_end),
                ("limit", params.limit),
                ("offset", params.offset),
            ) if value is not None
        }
        raw = await self._require_history().get(HISTORY_PATH, query)
        if not isinstance(raw, list):
            raise ResponseDecodeError(f"history response must be an array, got {type(raw).__name__}")
        return [decode_history_entry(item) for item in raw]
