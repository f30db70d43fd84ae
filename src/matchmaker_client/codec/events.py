"""Stream event decoder - raw matchmaker events to PendingTransaction / PendingBundle."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from matchmaker_client.codec.numeric import decode_int
from matchmaker_client.errors import MalformedNumericField, StreamDecodeError
from matchmaker_client.models.events import (
    EventTx,
    PendingBundle,
    PendingEvent,
    PendingTransaction,
    StreamEvent,
)

log = logging.getLogger(__name__)

# SSE type used when the server does not name the event.
GENERIC_EVENT_TYPE = "message"


def resolve_kind(declared: str | None, raw: Mapping[str, Any]) -> StreamEvent | None:
    """Work out which kind an incoming event is.

    A declared ``bundle``/``transaction`` type wins. Untyped messages are
    classified by shape: more than one tx descriptor is a bundle, anything
    else a transaction. Any other declared type is unrecognized (None).
    """
    if declared and declared != GENERIC_EVENT_TYPE:
        try:
            return StreamEvent(declared.lower())
        except ValueError:
            return None
    txs = raw.get("txs")
    if isinstance(txs, list) and len(txs) > 1:
        return StreamEvent.BUNDLE
    return StreamEvent.TRANSACTION


def _optional_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise StreamDecodeError(f"{key} must be a string, got {type(value).__name__}", raw)
    return value


def _event_tx(raw: Any) -> EventTx:
    if not isinstance(raw, Mapping):
        raise StreamDecodeError(f"tx descriptor must be an object, got {type(raw).__name__}", raw)
    return EventTx(
        to=_optional_str(raw, "to"),
        function_selector=_optional_str(raw, "functionSelector"),
        call_data=_optional_str(raw, "callData"),
    )


def _optional_quantity(raw: Mapping[str, Any], key: str) -> int | None:
    value = raw.get(key)
    if value is None:
        return None
    try:
        return decode_int(value, key)
    except MalformedNumericField as exc:
        raise StreamDecodeError(str(exc), raw) from exc


def decode_event(kind: StreamEvent, raw: Any) -> PendingEvent:
    """Decode one wire event of the given kind.

    Raises StreamDecodeError if the payload is malformed.
    """
    if not isinstance(raw, Mapping):
        raise StreamDecodeError(f"event must be an object, got {type(raw).__name__}", raw)

    tx_hash = raw.get("hash")
    if not isinstance(tx_hash, str) or not tx_hash:
        raise StreamDecodeError("event has no hash", raw)

    logs = raw.get("logs")
    if logs is not None and not isinstance(logs, list):
        raise StreamDecodeError("logs must be an array", raw)

    txs_raw = raw.get("txs")
    if txs_raw is not None and not isinstance(txs_raw, list):
        raise StreamDecodeError("txs must be an array", raw)
    txs = tuple(_event_tx(t) for t in txs_raw) if txs_raw is not None else None

    mev_gas_price = _optional_quantity(raw, "mevGasPrice")
    gas_used = _optional_quantity(raw, "gasUsed")

    if kind == StreamEvent.TRANSACTION:
        first = txs[0] if txs else EventTx()
        return PendingTransaction(
            hash=tx_hash,
            logs=logs,
            to=first.to,
            function_selector=first.function_selector,
            call_data=first.call_data,
            mev_gas_price=mev_gas_price,
            gas_used=gas_used,
        )
    if kind == StreamEvent.BUNDLE:
        return PendingBundle(
            hash=tx_hash,
            logs=logs,
            txs=txs,
            mev_gas_price=mev_gas_price,
            gas_used=gas_used,
        )
    raise StreamDecodeError(f"unknown event kind {kind!r}", raw)
