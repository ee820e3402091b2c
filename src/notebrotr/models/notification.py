"""
Inbound relay notifications as a closed set of variants.

The relay session yields one of two shapes: an
[EventNotification][notebrotr.models.notification.EventNotification]
carrying a received event, or an
[OtherNotification][notebrotr.models.notification.OtherNotification]
wrapping any other relay message (EOSE, NOTICE, OK, CLOSED, ...) as an
opaque value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias

from .event import Event


@dataclass(frozen=True, slots=True)
class EventNotification:
    """An event delivered by the relay for an active subscription.

    Attributes:
        event: The received [Event][notebrotr.models.event.Event].
        relay_url: URL of the relay that delivered it.
        subscription_id: Id of the subscription that matched it.
    """

    event: Event
    relay_url: str
    subscription_id: str


@dataclass(frozen=True, slots=True)
class OtherNotification:
    """Any non-event relay message. Observed for diagnostics only.

    Attributes:
        relay_url: URL of the relay that sent it.
        message: The raw SDK message object.
    """

    relay_url: str
    message: Any

    def describe(self) -> str:
        """Short human-readable description for log lines."""
        as_json = getattr(self.message, "as_json", None)
        if callable(as_json):
            return str(as_json())
        return repr(self.message)


Notification: TypeAlias = EventNotification | OtherNotification
