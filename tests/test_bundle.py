"""Bundle parsing, validation and wire encoding."""

from __future__ import annotations

import logging

import pytest

from matchmaker_client.codec.bundle import (
    encode_bundle_params,
    encode_hints,
    encode_private_tx_params,
    encode_sim_options,
    parse_bundle_params,
    validate_bundle,
)
from matchmaker_client.errors import InvalidBundleShape, MalformedNumericField
from matchmaker_client.models.bundles import (
    BundleParams,
    HashEntry,
    HintPreferences,
    Inclusion,
    NestedBundleEntry,
    ParentBlock,
    Privacy,
    Refund,
    RefundConfig,
    SimBundleOptions,
    TransactionOptions,
    TxEntry,
    Validity,
)

from tests.factories import SIGNED_TX, TX_HASH, make_bundle_dict, make_bundle_params


# ── Parsing ──────────────────────────────────────────────────────


def test_parse_bundle_dict():
    params = parse_bundle_params(make_bundle_dict(block=100))
    assert params.inclusion == Inclusion(block=100, max_block=105)
    assert params.body == (
        HashEntry(hash=TX_HASH),
        TxEntry(tx=SIGNED_TX, can_revert=False),
    )
    assert params.validity.refund == (Refund(body_idx=0, percent=90),)
    assert params.validity.refund_config[0].percent == 100


def test_parse_accepts_hex_block_numbers():
    raw = make_bundle_dict()
    raw["inclusion"] = {"block": "0x10", "maxBlock": "0x20"}
    params = parse_bundle_params(raw)
    assert params.inclusion == Inclusion(block=16, max_block=32)


def test_parse_nested_bundle_and_privacy():
    raw = make_bundle_dict(
        privacy={"hints": {"calldata": True, "logs": False}, "builders": ["flashbots"]},
        metadata={"originId": "searcher-1"},
    )
    raw["body"].append({"bundle": make_bundle_dict(block=101)})
    params = parse_bundle_params(raw)
    nested = params.body[2]
    assert isinstance(nested, NestedBundleEntry)
    assert nested.bundle.inclusion.block == 101
    assert params.privacy.hints == HintPreferences(calldata=True, logs=False)
    assert params.privacy.builders == ("flashbots",)
    assert params.metadata.origin_id == "searcher-1"


def test_entry_with_hash_and_tx_is_rejected():
    raw = make_bundle_dict()
    raw["body"][0] = {"hash": TX_HASH, "tx": SIGNED_TX, "canRevert": True}
    with pytest.raises(InvalidBundleShape) as exc_info:
        parse_bundle_params(raw)
    assert exc_info.value.path == "body[0]"


def test_entry_with_no_shape_is_rejected():
    raw = make_bundle_dict()
    raw["body"][1] = {"canRevert_typo": True}
    with pytest.raises(InvalidBundleShape) as exc_info:
        parse_bundle_params(raw)
    assert exc_info.value.path == "body[1]"


def test_tx_entry_requires_can_revert():
    raw = make_bundle_dict()
    raw["body"][1] = {"tx": SIGNED_TX}
    with pytest.raises(InvalidBundleShape, match="canRevert"):
        parse_bundle_params(raw)


def test_bad_nested_entry_reports_full_path():
    inner = make_bundle_dict()
    inner["body"][0] = {"hash": TX_HASH, "bundle": {}}
    raw = make_bundle_dict()
    raw["body"].append({"bundle": inner})
    with pytest.raises(InvalidBundleShape) as exc_info:
        parse_bundle_params(raw)
    assert exc_info.value.path == "body[2].bundle.body[0]"


def test_unknown_top_level_field_is_rejected():
    with pytest.raises(InvalidBundleShape, match="unknown field"):
        parse_bundle_params(make_bundle_dict(inclusions={"block": 1}))


def test_missing_inclusion_is_rejected():
    raw = make_bundle_dict()
    del raw["inclusion"]
    with pytest.raises(InvalidBundleShape, match="inclusion"):
        parse_bundle_params(raw)


def test_negative_block_in_dict_is_rejected():
    raw = make_bundle_dict()
    raw["inclusion"]["block"] = -1
    with pytest.raises(InvalidBundleShape) as exc_info:
        parse_bundle_params(raw)
    assert exc_info.value.path == "inclusion.block"


@pytest.mark.parametrize("field", ["refund", "refundConfig"])
@pytest.mark.parametrize("value", [{}, "", 0, None])
def test_falsy_non_array_validity_lists_are_rejected(field, value):
    raw = make_bundle_dict()
    raw["validity"][field] = value
    with pytest.raises(InvalidBundleShape, match="expected array") as exc_info:
        parse_bundle_params(raw)
    assert exc_info.value.path == f"validity.{field}"


# ── Validation ───────────────────────────────────────────────────


def test_valid_bundle_passes():
    validate_bundle(parse_bundle_params(make_bundle_dict()))


def test_max_block_below_block_is_rejected():
    params = BundleParams(inclusion=Inclusion(block=10, max_block=9), body=(HashEntry(TX_HASH),))
    with pytest.raises(InvalidBundleShape) as exc_info:
        validate_bundle(params)
    assert exc_info.value.path == "inclusion.maxBlock"


def test_max_block_equal_to_block_is_allowed():
    params = BundleParams(inclusion=Inclusion(block=10, max_block=10), body=(HashEntry(TX_HASH),))
    validate_bundle(params)


def test_empty_body_is_rejected():
    params = BundleParams(inclusion=Inclusion(block=10), body=())
    with pytest.raises(InvalidBundleShape) as exc_info:
        validate_bundle(params)
    assert exc_info.value.path == "body"


@pytest.mark.parametrize("body_idx", [-1, 2, 7])
def test_refund_body_idx_out_of_range(body_idx):
    params = BundleParams(
        inclusion=Inclusion(block=10),
        body=(HashEntry(TX_HASH), TxEntry(SIGNED_TX, True)),
        validity=Validity(refund=(Refund(body_idx=body_idx, percent=50),)),
    )
    with pytest.raises(InvalidBundleShape) as exc_info:
        validate_bundle(params)
    assert exc_info.value.path == "validity.refund[0].bodyIdx"


@pytest.mark.parametrize("percent", [-1, 101])
def test_percent_out_of_range(percent):
    params = BundleParams(
        inclusion=Inclusion(block=10),
        body=(HashEntry(TX_HASH),),
        validity=Validity(refund_config=(RefundConfig(address="0x" + "11" * 20, percent=percent),)),
    )
    with pytest.raises(InvalidBundleShape) as exc_info:
        validate_bundle(params)
    assert exc_info.value.path == "validity.refundConfig[0].percent"


def test_refund_config_not_summing_to_100_is_only_logged(caplog):
    params = BundleParams(
        inclusion=Inclusion(block=10),
        body=(HashEntry(TX_HASH),),
        validity=Validity(refund_config=(
            RefundConfig(address="0x" + "11" * 20, percent=40),
            RefundConfig(address="0x" + "22" * 20, percent=40),
        )),
    )
    with caplog.at_level(logging.WARNING):
        validate_bundle(params)
    assert "sum to 80" in caplog.text


def test_nested_bundles_are_validated_recursively():
    inner = BundleParams(inclusion=Inclusion(block=10, max_block=3), body=(HashEntry(TX_HASH),))
    outer = make_bundle_params(nested=inner)
    with pytest.raises(InvalidBundleShape) as exc_info:
        validate_bundle(outer)
    assert exc_info.value.path == "body[2].bundle.inclusion.maxBlock"


def test_unknown_entry_type_is_rejected():
    params = BundleParams(inclusion=Inclusion(block=10), body=({"hash": TX_HASH},))
    with pytest.raises(InvalidBundleShape) as exc_info:
        validate_bundle(params)
    assert exc_info.value.path == "body[0]"


def test_max_depth_cap():
    deepest = make_bundle_params()
    middle = make_bundle_params(nested=deepest)
    outer = make_bundle_params(nested=middle)
    validate_bundle(outer)
    validate_bundle(outer, max_depth=3)
    with pytest.raises(InvalidBundleShape, match="nesting"):
        validate_bundle(outer, max_depth=2)


# ── Encoding ─────────────────────────────────────────────────────


def test_encode_bundle_params():
    payload = encode_bundle_params(parse_bundle_params(make_bundle_dict(block=16)))
    assert payload == {
        "version": "v0.1",
        "inclusion": {"block": "0x10", "maxBlock": "0x15"},
        "body": [
            {"hash": TX_HASH},
            {"tx": SIGNED_TX, "canRevert": False},
        ],
        "validity": {
            "refund": [{"bodyIdx": 0, "percent": 90}],
            "refundConfig": [{"address": "0x" + "11" * 20, "percent": 100}],
        },
    }


def test_encode_defaults_validity_and_keeps_version():
    params = BundleParams(
        inclusion=Inclusion(block=1),
        body=(HashEntry(TX_HASH),),
        version="beta-1",
        privacy=Privacy(hints=HintPreferences(logs=True), builders=("builder0x69",)),
    )
    payload = encode_bundle_params(params)
    assert payload["version"] == "beta-1"
    assert payload["inclusion"] == {"block": "0x1"}
    assert payload["validity"] == {"refund": [], "refundConfig": []}
    assert payload["privacy"] == {"hints": ["logs", "hash"], "builders": ["builder0x69"]}


def test_encode_nested_bundle():
    payload = encode_bundle_params(make_bundle_params(block=16, nested=make_bundle_params(block=17)))
    nested = payload["body"][2]["bundle"]
    assert nested["inclusion"]["block"] == "0x11"
    assert nested["version"] == "v0.1"


def test_encode_validates_first():
    params = BundleParams(inclusion=Inclusion(block=10, max_block=1), body=(HashEntry(TX_HASH),))
    with pytest.raises(InvalidBundleShape):
        encode_bundle_params(params)


def test_encode_hints():
    assert encode_hints(None) is None
    assert encode_hints(HintPreferences()) == ["hash"]
    hints = HintPreferences(
        calldata=True, contract_address=True, function_selector=False, logs=None,
    )
    assert encode_hints(hints) == ["calldata", "contract_address", "hash"]


def test_encode_sim_options():
    options = SimBundleOptions(
        parent_block=100,
        block_number=101,
        coinbase="0x" + "aa" * 20,
        timestamp=1_700_000_000,
        gas_limit=30_000_000,
        base_fee=2**70,
        timeout=10,
    )
    assert encode_sim_options(options) == {
        "parentBlock": "0x64",
        "blockNumber": "0x65",
        "coinbase": "0x" + "aa" * 20,
        "timestamp": hex(1_700_000_000),
        "gasLimit": hex(30_000_000),
        "baseFee": hex(2**70),
        "timeout": 10,
    }


def test_encode_sim_options_omits_unset_and_passes_block_hash():
    block_hash = "0x" + "99" * 32
    assert encode_sim_options(SimBundleOptions()) == {}
    assert encode_sim_options(SimBundleOptions(parent_block=block_hash)) == {"parentBlock": block_hash}


def test_encode_sim_options_rejects_bad_timeout():
    with pytest.raises(MalformedNumericField):
        encode_sim_options(SimBundleOptions(timeout=0))


def test_sim_options_parent_defaults():
    parent = ParentBlock(
        number=100, timestamp=1_000, coinbase="0xcb", gas_limit=30_000_000, base_fee_per_gas=7,
    )
    resolved = SimBundleOptions(gas_limit=1).with_parent_defaults(parent)
    assert resolved.parent_block == 100
    assert resolved.block_number == 101
    assert resolved.timestamp == 1_012
    assert resolved.coinbase == "0xcb"
    assert resolved.gas_limit == 1
    assert resolved.base_fee == 7
    assert resolved.timeout == 5


def test_encode_private_tx_params():
    options = TransactionOptions(
        hints=HintPreferences(function_selector=True),
        max_block_number=0x10,
        builders=("flashbots",),
    )
    assert encode_private_tx_params(SIGNED_TX, options) == {
        "tx": SIGNED_TX,
        "maxBlockNumber": "0x10",
        "preferences": {
            "fast": True,
            "privacy": {"hints": ["function_selector", "hash"], "builders": ["flashbots"]},
        },
    }


def test_encode_private_tx_defaults():
    assert encode_private_tx_params(SIGNED_TX) == {
        "tx": SIGNED_TX,
        "preferences": {"fast": True, "privacy": {}},
    }


@pytest.mark.parametrize("tx", ["", "0x", "02f8", None])
def test_encode_private_tx_rejects_bad_tx(tx):
    with pytest.raises(InvalidBundleShape):
        encode_private_tx_params(tx)
