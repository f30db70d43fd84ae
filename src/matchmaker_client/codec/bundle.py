"""Bundle validation and JSON-RPC parameter building.

Everything here runs before any network call: a bundle that fails
validation raises InvalidBundleShape naming the offending field path
(e.g. ``body[1].bundle.inclusion.maxBlock``) and is never sent.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from matchmaker_client.codec.numeric import decode_int, encode_int
from matchmaker_client.errors import InvalidBundleShape, MalformedNumericField
from matchmaker_client.models.bundles import (
    BodyEntry,
    BundleParams,
    HashEntry,
    HintPreferences,
    Inclusion,
    Metadata,
    NestedBundleEntry,
    Privacy,
    Refund,
    RefundConfig,
    SimBundleOptions,
    TransactionOptions,
    TxEntry,
    Validity,
)

log = logging.getLogger(__name__)

DEFAULT_BUNDLE_VERSION = "v0.1"

# Hint flags in the order they are sent; wire names match the attribute names.
_HINT_FIELDS = ("calldata", "contract_address", "function_selector", "logs")
_HINT_WIRE_KEYS = {
    "calldata": "calldata",
    "contractAddress": "contract_address",
    "functionSelector": "function_selector",
    "logs": "logs",
}

_BUNDLE_KEYS = frozenset({"version", "inclusion", "body", "validity", "privacy", "metadata"})
_SHAPES = "{hash}, {tx, canRevert} or {bundle}"


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ── Parsing caller-supplied mappings ──────────────────────


def _mapping(raw: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise InvalidBundleShape(f"expected object, got {type(raw).__name__}", path)
    return raw


def _sequence(raw: Any, path: str) -> Sequence[Any]:
    if not isinstance(raw, (list, tuple)):
        raise InvalidBundleShape(f"expected array, got {type(raw).__name__}", path)
    return raw


def _string(raw: Any, path: str) -> str:
    if not isinstance(raw, str):
        raise InvalidBundleShape(f"expected string, got {type(raw).__name__}", path)
    return raw


def _block_number(raw: Any, path: str) -> int:
    try:
        return decode_int(raw)
    except MalformedNumericField as exc:
        raise InvalidBundleShape(str(exc), path) from exc


def _int(raw: Any, path: str) -> int:
    if not _is_int(raw):
        raise InvalidBundleShape(f"expected integer, got {type(raw).__name__}", path)
    return raw


def _check_keys(raw: Mapping[str, Any], allowed: frozenset[str], path: str) -> None:
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise InvalidBundleShape(f"unknown field(s) {', '.join(unknown)}", path)


def parse_hints(raw: Any, path: str = "hints") -> HintPreferences:
    """Build HintPreferences from ``{calldata, contractAddress, functionSelector, logs}``."""
    data = _mapping(raw, path)
    _check_keys(data, frozenset(_HINT_WIRE_KEYS), path)
    flags: dict[str, bool] = {}
    for wire_key, attr in _HINT_WIRE_KEYS.items():
        if wire_key in data and data[wire_key] is not None:
            value = data[wire_key]
            if not isinstance(value, bool):
                raise InvalidBundleShape("expected boolean", _join(path, wire_key))
            flags[attr] = value
    return HintPreferences(**flags)


def _parse_entry(raw: Any, path: str) -> BodyEntry:
    entry = _mapping(raw, path)
    shapes = [
        name for name, present in (
            ("hash", "hash" in entry),
            ("tx", "tx" in entry or "canRevert" in entry),
            ("bundle", "bundle" in entry),
        ) if present
    ]
    if len(shapes) != 1:
        found = ", ".join(sorted(entry)) or "no fields"
        raise InvalidBundleShape(f"entry must be exactly one of {_SHAPES} (found {found})", path)

    shape = shapes[0]
    if shape == "hash":
        _check_keys(entry, frozenset({"hash"}), path)
        return HashEntry(hash=_string(entry["hash"], _join(path, "hash")))
    if shape == "tx":
        _check_keys(entry, frozenset({"tx", "canRevert"}), path)
        if "tx" not in entry:
            raise InvalidBundleShape("missing field tx", path)
        if "canRevert" not in entry:
            raise InvalidBundleShape("missing field canRevert", path)
        can_revert = entry["canRevert"]
        if not isinstance(can_revert, bool):
            raise InvalidBundleShape("expected boolean", _join(path, "canRevert"))
        return TxEntry(tx=_string(entry["tx"], _join(path, "tx")), can_revert=can_revert)
    _check_keys(entry, frozenset({"bundle"}), path)
    return NestedBundleEntry(bundle=_parse_bundle(entry["bundle"], _join(path, "bundle")))


def _parse_validity(raw: Any, path: str) -> Validity:
    data = _mapping(raw, path)
    _check_keys(data, frozenset({"refund", "refundConfig"}), path)
    refunds = []
    for i, item in enumerate(_sequence(data.get("refund", []), _join(path, "refund"))):
        item_path = f"{_join(path, 'refund')}[{i}]"
        r = _mapping(item, item_path)
        _check_keys(r, frozenset({"bodyIdx", "percent"}), item_path)
        refunds.append(Refund(
            body_idx=_int(r.get("bodyIdx"), _join(item_path, "bodyIdx")),
            percent=_int(r.get("percent"), _join(item_path, "percent")),
        ))
    configs = []
    for i, item in enumerate(_sequence(data.get("refundConfig", []), _join(path, "refundConfig"))):
        item_path = f"{_join(path, 'refundConfig')}[{i}]"
        c = _mapping(item, item_path)
        _check_keys(c, frozenset({"address", "percent"}), item_path)
        configs.append(RefundConfig(
            address=_string(c.get("address"), _join(item_path, "address")),
            percent=_int(c.get("percent"), _join(item_path, "percent")),
        ))
    return Validity(refund=tuple(refunds), refund_config=tuple(configs))


def _parse_privacy(raw: Any, path: str) -> Privacy:
    data = _mapping(raw, path)
    _check_keys(data, frozenset({"hints", "builders"}), path)
    hints = None
    if data.get("hints") is not None:
        hints = parse_hints(data["hints"], _join(path, "hints"))
    builders = None
    if data.get("builders") is not None:
        builders_path = _join(path, "builders")
        builders = tuple(
            _string(b, f"{builders_path}[{i}]")
            for i, b in enumerate(_sequence(data["builders"], builders_path))
        )
    return Privacy(hints=hints, builders=builders)


def _parse_bundle(raw: Any, path: str) -> BundleParams:
    data = _mapping(raw, path)
    _check_keys(data, _BUNDLE_KEYS, path)

    if "inclusion" not in data:
        raise InvalidBundleShape("missing field inclusion", path)
    inc_path = _join(path, "inclusion")
    inc = _mapping(data["inclusion"], inc_path)
    _check_keys(inc, frozenset({"block", "maxBlock"}), inc_path)
    if "block" not in inc:
        raise InvalidBundleShape("missing field block", inc_path)
    max_block = None
    if inc.get("maxBlock") is not None:
        max_block = _block_number(inc["maxBlock"], _join(inc_path, "maxBlock"))
    inclusion = Inclusion(
        block=_block_number(inc["block"], _join(inc_path, "block")),
        max_block=max_block,
    )

    if "body" not in data:
        raise InvalidBundleShape("missing field body", path)
    body_path = _join(path, "body")
    body = tuple(
        _parse_entry(item, f"{body_path}[{i}]")
        for i, item in enumerate(_sequence(data["body"], body_path))
    )

    version = None
    if data.get("version") is not None:
        version = _string(data["version"], _join(path, "version"))

    validity = None
    if data.get("validity") is not None:
        validity = _parse_validity(data["validity"], _join(path, "validity"))

    privacy = None
    if data.get("privacy") is not None:
        privacy = _parse_privacy(data["privacy"], _join(path, "privacy"))

    metadata = None
    if data.get("metadata") is not None:
        meta_path = _join(path, "metadata")
        meta = _mapping(data["metadata"], meta_path)
        _check_keys(meta, frozenset({"originId"}), meta_path)
        origin_id = meta.get("originId")
        if origin_id is not None:
            origin_id = _string(origin_id, _join(meta_path, "originId"))
        metadata = Metadata(origin_id=origin_id)

    return BundleParams(
        inclusion=inclusion,
        body=body,
        version=version,
        validity=validity,
        privacy=privacy,
        metadata=metadata,
    )


def parse_bundle_params(raw: Mapping[str, Any]) -> BundleParams:
    """Build typed BundleParams from a camelCase JSON-style mapping.

    Only the shape is checked here; call validate_bundle for value rules.
    """
    return _parse_bundle(raw, "")


# ── Validation ────────────────────────────────────────────


def _check_percent(value: Any, path: str) -> None:
    if not _is_int(value) or not 0 <= value <= 100:
        raise InvalidBundleShape(f"percent must be an integer in [0, 100], got {value!r}", path)


def _validate(params: BundleParams, path: str, depth: int, max_depth: int | None) -> None:
    if max_depth is not None and depth > max_depth:
        raise InvalidBundleShape(f"bundle nesting exceeds {max_depth} levels", path)

    inc_path = _join(path, "inclusion")
    block = params.inclusion.block
    if not _is_int(block) or block < 0:
        raise InvalidBundleShape(
            f"block must be a non-negative integer, got {block!r}", _join(inc_path, "block"),
        )
    max_block = params.inclusion.max_block
    if max_block is not None:
        if not _is_int(max_block) or max_block < block:
            raise InvalidBundleShape(
                f"maxBlock {max_block!r} is below block {block}", _join(inc_path, "maxBlock"),
            )

    body_path = _join(path, "body")
    if not params.body:
        raise InvalidBundleShape("body must not be empty", body_path)

    for i, entry in enumerate(params.body):
        entry_path = f"{body_path}[{i}]"
        if isinstance(entry, HashEntry):
            if not isinstance(entry.hash, str) or not entry.hash:
                raise InvalidBundleShape("hash must be a non-empty string", _join(entry_path, "hash"))
        elif isinstance(entry, TxEntry):
            if not isinstance(entry.tx, str) or not entry.tx:
                raise InvalidBundleShape("tx must be a non-empty string", _join(entry_path, "tx"))
            if not isinstance(entry.can_revert, bool):
                raise InvalidBundleShape("canRevert must be a boolean", _join(entry_path, "canRevert"))
        elif isinstance(entry, NestedBundleEntry):
            _validate(entry.bundle, _join(entry_path, "bundle"), depth + 1, max_depth)
        else:
            raise InvalidBundleShape(
                f"entry must be exactly one of {_SHAPES}, got {type(entry).__name__}", entry_path,
            )

    if params.validity is None:
        return
    validity_path = _join(path, "validity")
    for i, refund in enumerate(params.validity.refund):
        refund_path = f"{_join(validity_path, 'refund')}[{i}]"
        idx = refund.body_idx
        if not _is_int(idx) or not 0 <= idx < len(params.body):
            raise InvalidBundleShape(
                f"bodyIdx {idx!r} is outside body of length {len(params.body)}",
                _join(refund_path, "bodyIdx"),
            )
        _check_percent(refund.percent, _join(refund_path, "percent"))

    total = 0
    for i, config in enumerate(params.validity.refund_config):
        config_path = f"{_join(validity_path, 'refundConfig')}[{i}]"
        if not isinstance(config.address, str) or not config.address:
            raise InvalidBundleShape("address must be a non-empty string", _join(config_path, "address"))
        _check_percent(config.percent, _join(config_path, "percent"))
        total += config.percent
    if params.validity.refund_config and total != 100:
        log.warning(
            "refundConfig percentages at %s sum to %d, not 100",
            validity_path, total,
        )


def validate_bundle(params: BundleParams, max_depth: int | None = None) -> None:
    """Check a bundle against the rules the matchmaker enforces.

    ``max_depth`` caps bundle-in-bundle nesting locally (1 = no nesting).
    None leaves the limit to the service.
    """
    _validate(params, "", 1, max_depth)


# ── Wire encoding ─────────────────────────────────────────


def encode_hints(hints: HintPreferences | None) -> list[str] | None:
    """Wire list of enabled hints, or None to leave the choice to the service.

    The transaction/bundle hash is always shared once hints are given.
    """
    if hints is None:
        return None
    enabled = [name for name in _HINT_FIELDS if getattr(hints, name)]
    enabled.append("hash")
    return enabled


def _encode_entry(entry: BodyEntry) -> dict[str, Any]:
    if isinstance(entry, HashEntry):
        return {"hash": entry.hash}
    if isinstance(entry, TxEntry):
        return {"tx": entry.tx, "canRevert": entry.can_revert}
    if isinstance(entry, NestedBundleEntry):
        return {"bundle": _encode_bundle(entry.bundle)}
    raise InvalidBundleShape(f"unsupported body entry {type(entry).__name__}")


def _encode_bundle(params: BundleParams) -> dict[str, Any]:
    inclusion: dict[str, Any] = {"block": encode_int(params.inclusion.block, "inclusion.block")}
    if params.inclusion.max_block is not None:
        inclusion["maxBlock"] = encode_int(params.inclusion.max_block, "inclusion.maxBlock")

    validity = params.validity or Validity()
    out: dict[str, Any] = {
        "version": params.version or DEFAULT_BUNDLE_VERSION,
        "inclusion": inclusion,
        "body": [_encode_entry(e) for e in params.body],
        "validity": {
            "refund": [{"bodyIdx": r.body_idx, "percent": r.percent} for r in validity.refund],
            "refundConfig": [
                {"address": c.address, "percent": c.percent} for c in validity.refund_config
            ],
        },
    }

    if params.privacy is not None:
        privacy: dict[str, Any] = {}
        hints = encode_hints(params.privacy.hints)
        if hints is not None:
            privacy["hints"] = hints
        if params.privacy.builders is not None:
            privacy["builders"] = list(params.privacy.builders)
        out["privacy"] = privacy

    if params.metadata is not None and params.metadata.origin_id is not None:
        out["metadata"] = {"originId": params.metadata.origin_id}

    return out


def encode_bundle_params(params: BundleParams, max_depth: int | None = None) -> dict[str, Any]:
    """Validate ``params`` and return the ``mev_sendBundle``/``mev_simBundle`` parameter object."""
    validate_bundle(params, max_depth=max_depth)
    return _encode_bundle(params)


def encode_sim_options(options: SimBundleOptions) -> dict[str, Any]:
    """Second ``mev_simBundle`` parameter. Unset overrides are left out."""
    out: dict[str, Any] = {}
    parent = options.parent_block
    if parent is not None:
        if isinstance(parent, str):
            out["parentBlock"] = parent
        else:
            out["parentBlock"] = encode_int(parent, "parentBlock")
    for attr, wire in (
        ("block_number", "blockNumber"),
        ("timestamp", "timestamp"),
        ("gas_limit", "gasLimit"),
        ("base_fee", "baseFee"),
    ):
        value = getattr(options, attr)
        if value is not None:
            out[wire] = encode_int(value, wire)
    if options.coinbase is not None:
        out["coinbase"] = options.coinbase
    if options.timeout is not None:
        if not _is_int(options.timeout) or options.timeout <= 0:
            raise MalformedNumericField(
                f"timeout must be a positive number of seconds, got {options.timeout!r}", "timeout",
            )
        out["timeout"] = options.timeout
    return out


def encode_private_tx_params(
    signed_tx: str,
    options: TransactionOptions | None = None,
) -> dict[str, Any]:
    """Build the ``eth_sendPrivateTransaction`` parameter object."""
    if not isinstance(signed_tx, str) or not signed_tx.startswith("0x") or len(signed_tx) < 3:
        raise InvalidBundleShape("signed transaction must be a 0x-prefixed hex string", "tx")
    options = options or TransactionOptions()

    privacy: dict[str, Any] = {}
    hints = encode_hints(options.hints)
    if hints is not None:
        privacy["hints"] = hints
    if options.builders is not None:
        privacy["builders"] = list(options.builders)

    out: dict[str, Any] = {"tx": signed_tx}
    if options.max_block_number is not None:
        out["maxBlockNumber"] = encode_int(options.max_block_number, "maxBlockNumber")
    out["preferences"] = {"fast": True, "privacy": privacy}
    return out
