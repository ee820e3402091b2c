"""
Event query predicate shared by relay subscriptions and local reads.

An [EventFilter][notebrotr.models.filter.EventFilter] is converted to a
``nostr_sdk.Filter`` for the live subscription, and translated to SQL by
[EventStore][notebrotr.core.store.EventStore] for local queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from nostr_sdk import Filter, Kind, PublicKey, Timestamp

from ._validation import validate_optional_count, validate_optional_pubkey
from .constants import EVENT_KIND_MAX


class Order(StrEnum):
    """Sort direction by event creation timestamp."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class EventFilter:
    """Immutable predicate over events.

    Every field is optional; an empty filter matches all events.

    Attributes:
        author: Author public key as lowercase 64-char hex.
        kind: Integer event kind.
        since: Inclusive lower bound on ``created_at`` (unix seconds).
        limit: Maximum number of results.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If ``since``/``limit`` are negative, ``kind`` is out of
            range, or ``author`` is not a hex public key.

    Examples:
        ```python
        EventFilter(author=keys.public_key().to_hex(), kind=1, since=now)
        EventFilter(kind=EventKind.TEXT_NOTE, limit=10)
        ```
    """

    author: str | None = None
    kind: int | None = None
    since: int | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        validate_optional_pubkey(self.author, "author")
        validate_optional_count(self.kind, "kind")
        validate_optional_count(self.since, "since")
        validate_optional_count(self.limit, "limit")
        if self.kind is not None and self.kind > EVENT_KIND_MAX:
            raise ValueError(f"kind must be <= {EVENT_KIND_MAX}")

    def is_empty(self) -> bool:
        """Return True if no constraint is set."""
        return self.author is None and self.kind is None and self.since is None and self.limit is None

    def to_nostr_filter(self) -> Filter:
        """Build the equivalent ``nostr_sdk.Filter`` for a relay subscription."""
        f = Filter()
        if self.author is not None:
            f = f.author(PublicKey.parse(self.author))
        if self.kind is not None:
            f = f.kind(Kind(int(self.kind)))
        if self.since is not None:
            f = f.since(Timestamp.from_secs(self.since))
        if self.limit is not None:
            f = f.limit(self.limit)
        return f
