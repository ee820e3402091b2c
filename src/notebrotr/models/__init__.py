"""Frozen dataclasses for Nostr events, filters, and relay notifications.

The models layer sits at the bottom of the import graph. It performs no
I/O; the only third-party dependency is ``nostr_sdk`` for the wrapped event
and filter types. All validation happens in ``__post_init__`` so invalid
instances never escape the constructor.

Attributes:
    Event: Immutable wrapper around ``nostr_sdk.Event`` with cached row
        parameters for the event store.
    EventFilter: Author/kind/since/limit predicate used for subscriptions
        and local queries.
    EventKind: Known event kinds, with ``None`` as the unrecognized case.
    Notification: Union of
        [EventNotification][notebrotr.models.notification.EventNotification]
        and [OtherNotification][notebrotr.models.notification.OtherNotification].
    TextNote: Public projection of a stored note.
"""

from .constants import EVENT_KIND_MAX, EventKind, ServiceName
from .event import Event, EventDbParams
from .filter import EventFilter, Order
from .note import TextNote
from .notification import EventNotification, Notification, OtherNotification


__all__ = [
    "EVENT_KIND_MAX",
    "Event",
    "EventDbParams",
    "EventFilter",
    "EventKind",
    "EventNotification",
    "Notification",
    "Order",
    "OtherNotification",
    "ServiceName",
    "TextNote",
]
