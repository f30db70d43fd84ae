"""Data models for matchmaker_client."""

from matchmaker_client.models.bundles import (
    BodyEntry,
    BundleParams,
    HashEntry,
    HintPreferences,
    Inclusion,
    Metadata,
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
from matchmaker_client.models.config import ClientConfig, MatchmakerNetwork, StreamConfig
from matchmaker_client.models.events import (
    EventTx,
    PendingBundle,
    PendingEvent,
    PendingTransaction,
    SseMessage,
    StreamEvent,
)
from matchmaker_client.models.results import (
    EventHistoryEntry,
    EventHistoryInfo,
    EventHistoryParams,
    SendBundleResult,
    SimBundleResult,
)

__all__ = [
    "BodyEntry", "BundleParams", "HashEntry", "HintPreferences", "Inclusion",
    "Metadata", "NestedBundleEntry", "ParentBlock", "Privacy", "Refund",
    "RefundConfig", "SimBundleOptions", "TransactionOptions", "TxEntry", "Validity",
    "ClientConfig", "MatchmakerNetwork", "StreamConfig",
    "EventTx", "PendingBundle", "PendingEvent", "PendingTransaction",
    "SseMessage", "StreamEvent",
    "EventHistoryEntry", "EventHistoryInfo", "EventHistoryParams",
    "SendBundleResult", "SimBundleResult",
]
