"""Shared constants for the models layer.

See Also:
    [notebrotr.models.event][]: Uses [EventKind][notebrotr.models.constants.EventKind]
        to classify incoming events.
    [notebrotr.core.base_service][]: Uses
        [ServiceName][notebrotr.models.constants.ServiceName] for logging and
        metrics labels.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class ServiceName(StrEnum):
    """Canonical service identifiers used in logging and metrics.

    Attributes:
        INGESTER: Notification-to-store pipeline
            ([Ingester][notebrotr.services.ingester.Ingester]).
        API: REST request/response surface
            ([Api][notebrotr.services.api.Api]).
    """

    INGESTER = "ingester"
    API = "api"


class EventKind(IntEnum):
    """Nostr event kinds this project understands.

    Kinds form an open domain (``0..65535``). Only the members below carry
    meaning here; every other value is the explicit "unrecognized" case,
    represented by ``None`` from [classify()][notebrotr.models.constants.EventKind.classify].

    Attributes:
        SET_METADATA: Kind 0 -- user profile metadata (NIP-01).
        TEXT_NOTE: Kind 1 -- short text note (NIP-01).
    """

    SET_METADATA = 0
    TEXT_NOTE = 1

    @classmethod
    def classify(cls, value: int) -> EventKind | None:
        """Map a raw kind number to a known member, or ``None`` if unrecognized.

        Raises:
            ValueError: If *value* is outside ``0..EVENT_KIND_MAX``.
        """
        if not 0 <= value <= EVENT_KIND_MAX:
            raise ValueError(f"kind {value} outside 0..{EVENT_KIND_MAX}")
        try:
            return cls(value)
        except ValueError:
            return None


EVENT_KIND_MAX = 65_535
