"""Wire codecs: numerics, bundle payloads, RPC responses and stream events."""

from matchmaker_client.codec.bundle import (
    encode_bundle_params,
    encode_hints,
    encode_private_tx_params,
    encode_sim_options,
    parse_bundle_params,
    parse_hints,
    validate_bundle,
)
from matchmaker_client.codec.events import decode_event, resolve_kind
from matchmaker_client.codec.numeric import decode_hex_int, decode_int, encode_int, normalize_hex
from matchmaker_client.codec.responses import (
    decode_history_entry,
    decode_history_info,
    decode_send_bundle_response,
    decode_sim_bundle_response,
    iter_tx_logs,
)

__all__ = [
    "encode_bundle_params", "encode_hints", "encode_private_tx_params",
    "encode_sim_options", "parse_bundle_params", "parse_hints", "validate_bundle",
    "decode_event", "resolve_kind",
    "decode_hex_int", "decode_int", "encode_int", "normalize_hex",
    "decode_history_entry", "decode_history_info", "decode_send_bundle_response",
    "decode_sim_bundle_response", "iter_tx_logs",
]
