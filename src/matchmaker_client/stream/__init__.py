"""Event stream subscription management."""

from matchmaker_client.stream.subscription import (
    EventHandler,
    StreamState,
    Subscription,
    SubscriptionManager,
)

__all__ = ["EventHandler", "StreamState", "Subscription", "SubscriptionManager"]
