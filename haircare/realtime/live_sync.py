"""Live sync channel: in-process publish/subscribe for conversation changes.

Notifications are hints ("something changed, re-fetch your list"). They
carry no guarantee that the write is already visible to a new read.

Conversation writes are picked up from SQLAlchemy session events, so any
code path that commits a Conversation row through a session opened with a
channel in ``session.info["live_sync"]`` notifies subscribers.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from sqlalchemy import event
from sqlalchemy.orm import Session

from haircare.models.conversation import Conversation

logger = logging.getLogger(__name__)

CONVERSATIONS_SCOPE = "conversations"

_PENDING_KEY = "live_sync_pending"


class ChangeKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    scope: str
    kind: ChangeKind
    conversation_id: Optional[int] = None
    owner_id: Optional[str] = None


@dataclass(frozen=True)
class SubscriptionHandle:
    id: int
    scope: str


Callback = Callable[[ChangeEvent], None]


class LiveSyncChannel:
    """
    Subscriber registry.

    subscribe/unsubscribe/publish may be called from any thread. Callbacks
    run on the publishing thread, outside the registry lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[int, tuple[str, Callback]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, scope: str, callback: Callback) -> SubscriptionHandle:
        """Register ``callback`` for ``scope``. Re-subscribing returns the existing handle."""
        with self._lock:
            for handle_id, (existing_scope, existing_callback) in self._subscribers.items():
                if existing_scope == scope and existing_callback == callback:
                    return SubscriptionHandle(handle_id, scope)

            handle_id = next(self._ids)
            self._subscribers[handle_id] = (scope, callback)

        logger.debug(f"Live sync subscribe: scope={scope}, handle={handle_id}")
        return SubscriptionHandle(handle_id, scope)

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        """Release a subscription. Returns False if it was already released."""
        with self._lock:
            removed = self._subscribers.pop(handle.id, None)

        if removed is not None:
            logger.debug(f"Live sync unsubscribe: scope={handle.scope}, handle={handle.id}")
        return removed is not None

    def subscriber_count(self, scope: Optional[str] = None) -> int:
        with self._lock:
            if scope is None:
                return len(self._subscribers)
            return sum(1 for s, _ in self._subscribers.values() if s == scope)

    def publish(self, change: ChangeEvent) -> int:
        """
        Deliver ``change`` to every subscriber of its scope.

        A failing subscriber is logged and skipped so the others still get
        the hint.

        Returns:
            Number of subscribers notified
        """
        with self._lock:
            targets = [cb for scope, cb in self._subscribers.values() if scope == change.scope]

        delivered = 0
        for callback in targets:
            try:
                callback(change)
                delivered += 1
            except Exception:
                logger.exception(f"Live sync subscriber failed for {change.scope}")

        return delivered


@event.listens_for(Session, "after_flush")
def _record_conversation_changes(session: Session, flush_context) -> None:
    if session.info.get("live_sync") is None:
        return

    pending = session.info.setdefault(_PENDING_KEY, [])

    for obj in session.new:
        if isinstance(obj, Conversation):
            pending.append(ChangeEvent(CONVERSATIONS_SCOPE, ChangeKind.INSERT, obj.id, obj.user_id))

    for obj in session.dirty:
        if isinstance(obj, Conversation) and session.is_modified(obj, include_collections=False):
            pending.append(ChangeEvent(CONVERSATIONS_SCOPE, ChangeKind.UPDATE, obj.id, obj.user_id))

    for obj in session.deleted:
        if isinstance(obj, Conversation):
            pending.append(ChangeEvent(CONVERSATIONS_SCOPE, ChangeKind.DELETE, obj.id, obj.user_id))


@event.listens_for(Session, "after_commit")
def _publish_conversation_changes(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, None)
    channel = session.info.get("live_sync")
    if not pending or channel is None:
        return

    # Collapse repeated flushes of the same row within one transaction
    for change in dict.fromkeys(pending):
        channel.publish(change)


@event.listens_for(Session, "after_soft_rollback")
def _discard_conversation_changes(session: Session, previous_transaction) -> None:
    session.info.pop(_PENDING_KEY, None)
