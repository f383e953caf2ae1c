"""Live conversation-list synchronization."""
from haircare.realtime.live_sync import (
    CONVERSATIONS_SCOPE,
    ChangeEvent,
    ChangeKind,
    LiveSyncChannel,
    SubscriptionHandle,
)

__all__ = [
    "CONVERSATIONS_SCOPE",
    "ChangeEvent",
    "ChangeKind",
    "LiveSyncChannel",
    "SubscriptionHandle",
]
