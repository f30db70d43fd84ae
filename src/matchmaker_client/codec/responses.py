"""RPC response decoders - raw JSON results to typed results."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from matchmaker_client.codec.events import decode_event, resolve_kind
from matchmaker_client.codec.numeric import decode_hex_int, decode_int
from matchmaker_client.errors import ResponseDecodeError, StreamDecodeError
from matchmaker_client.models.results import (
    EventHistoryEntry,
    EventHistoryInfo,
    SendBundleResult,
    SimBundleResult,
)


def _object(raw: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ResponseDecodeError(f"{what} response must be an object, got {type(raw).__name__}")
    return raw


def _require(raw: Mapping[str, Any], key: str, what: str) -> Any:
    if raw.get(key) is None:
        raise ResponseDecodeError(f"{what} response is missing {key}")
    return raw[key]


def decode_send_bundle_response(raw: Any) -> SendBundleResult:
    data = _object(raw, "mev_sendBundle")
    bundle_hash = _require(data, "bundleHash", "mev_sendBundle")
    if not isinstance(bundle_hash, str):
        raise ResponseDecodeError("mev_sendBundle bundleHash must be a string")
    return SendBundleResult(bundle_hash=bundle_hash)


def decode_sim_bundle_response(raw: Any) -> SimBundleResult:
    """Decode ``mev_simBundle``. ``success=False`` is returned, not raised."""
    what = "mev_simBundle"
    data = _object(raw, what)
    success = _require(data, "success", what)
    if not isinstance(success, bool):
        raise ResponseDecodeError(f"{what} success must be a boolean")
    logs = data.get("logs")
    if logs is not None and not isinstance(logs, list):
        raise ResponseDecodeError(f"{what} logs must be an array")
    return SimBundleResult(
        success=success,
        error=data.get("error"),
        state_block=decode_hex_int(_require(data, "stateBlock", what), "stateBlock"),
        mev_gas_price=decode_int(_require(data, "mevGasPrice", what), "mevGasPrice"),
        profit=decode_int(_require(data, "profit", what), "profit"),
        refundable_value=decode_int(_require(data, "refundableValue", what), "refundableValue"),
        gas_used=decode_int(_require(data, "gasUsed", what), "gasUsed"),
        logs=logs,
    )


def iter_tx_logs(logs: list[Mapping[str, Any]] | None) -> Iterator[Mapping[str, Any]]:
    """Walk a simulation log tree depth-first, yielding every tx log in body order."""
    for node in logs or []:
        yield from node.get("txLogs") or []
        yield from iter_tx_logs(node.get("bundleLogs"))


def decode_history_info(raw: Any) -> EventHistoryInfo:
    what = "history info"
    data = _object(raw, what)
    return EventHistoryInfo(
        count=decode_int(_require(data, "count", what), "count"),
        min_block=decode_int(_require(data, "minBlock", what), "minBlock"),
        max_block=decode_int(_require(data, "maxBlock", what), "maxBlock"),
        min_timestamp=decode_int(_require(data, "minTimestamp", what), "minTimestamp"),
        max_timestamp=decode_int(_require(data, "maxTimestamp", what), "maxTimestamp"),
        max_limit=decode_int(_require(data, "maxLimit", what), "maxLimit"),
    )


def decode_history_entry(raw: Any) -> EventHistoryEntry:
    what = "history entry"
    data = _object(raw, what)
    hint = _object(_require(data, "hint", what), "history hint")
    kind = resolve_kind(None, hint)
    try:
        decoded = decode_event(kind, hint)
    except StreamDecodeError as exc:
        raise ResponseDecodeError(f"{what} hint: {exc}") from exc
    return EventHistoryEntry(
        block=decode_int(_require(data, "block", what), "block"),
        timestamp=decode_int(_require(data, "timestamp", what), "timestamp"),
        hint=decoded,
    )
