"""Client for a matchmaker service: bundle and transaction submission,
bundle simulation, and the pending transaction/bundle event stream."""

from matchmaker_client.client import Matchmaker
from matchmaker_client.errors import (
    InvalidBundleShape,
    MalformedNumericField,
    MatchmakerError,
    ResponseDecodeError,
    StreamConnectionError,
    StreamDecodeError,
    TransportError,
)
from matchmaker_client.models import (
    BundleParams,
    HintPreferences,
    PendingBundle,
    PendingTransaction,
    SendBundleResult,
    SimBundleOptions,
    SimBundleResult,
    StreamEvent,
    TransactionOptions,
)
from matchmaker_client.stream import StreamState, Subscription, SubscriptionManager

__version__ = "0.1.0"

__all__ = [
    "Matchmaker",
    "InvalidBundleShape", "MalformedNumericField", "MatchmakerError",
    "ResponseDecodeError", "StreamConnectionError", "StreamDecodeError", "TransportError",
    "BundleParams", "HintPreferences", "PendingBundle", "PendingTransaction",
    "SendBundleResult", "SimBundleOptions", "SimBundleResult", "StreamEvent",
    "TransactionOptions",
    "StreamState", "Subscription", "SubscriptionManager",
]
