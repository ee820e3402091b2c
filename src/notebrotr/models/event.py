"""
Immutable Nostr event wrapper with store serialization.

Wraps ``nostr_sdk.Event`` in a frozen dataclass that transparently delegates
attribute access to the underlying SDK object while adding row conversion
via [to_db_params()][notebrotr.models.event.Event.to_db_params] and
[from_db_params()][notebrotr.models.event.Event.from_db_params].

See Also:
    [notebrotr.core.store][]: Persists events keyed by their id.
    [notebrotr.services.ingester][]: Commits events received from the relay.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from nostr_sdk import Event as NostrEvent

from ._validation import validate_instance
from .constants import EventKind


class EventDbParams(NamedTuple):
    """Positional column values for one row of the ``event`` table.

    Attributes:
        id: Event ID as 32-byte binary (SHA-256 of the serialized event).
        pubkey: Author public key as 32-byte binary.
        created_at: Unix timestamp of event creation.
        kind: Integer event kind (e.g., 1 for text notes).
        tags: JSON-encoded array of tag arrays.
        content: Raw event content string.
        sig: Schnorr signature as 64-byte binary.
    """

    id: bytes
    pubkey: bytes
    created_at: int
    kind: int
    tags: str
    content: str
    sig: bytes


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable Nostr event with store conversion.

    All attribute access is transparently delegated to the inner
    ``nostr_sdk.Event`` via ``__getattr__``, so SDK methods like
    ``id()``, ``author()``, ``kind()`` and ``content()`` work directly.

    The row parameters are computed once at construction and cached.
    Content and tags are kept byte for byte, NUL characters included.

    Args:
        _nostr_event: The underlying ``nostr_sdk.Event`` instance.

    Raises:
        TypeError: If ``_nostr_event`` is not a ``nostr_sdk.Event``.

    Examples:
        ```python
        nostr_event = EventBuilder.text_note("hello").sign_with_keys(keys)
        event = Event(nostr_event)
        event.content()          # "hello"
        event.known_kind()       # EventKind.TEXT_NOTE
        event.to_db_params().id  # 32 bytes
        ```
    """

    _nostr_event: NostrEvent
    _db_params: EventDbParams = field(
        default=None,
        init=False,
        repr=False,
        compare=False,
        hash=False,  # type: ignore[assignment]  # mypy expects bool literal, field() accepts it at runtime
    )

    def __post_init__(self) -> None:
        validate_instance(self._nostr_event, NostrEvent, "_nostr_event")
        object.__setattr__(self, "_db_params", self._compute_db_params())

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to the wrapped NostrEvent."""
        try:
            return getattr(self._nostr_event, name)
        except AttributeError:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            ) from None

    @property
    def id_hex(self) -> str:
        """Hex-encoded event id."""
        return self._db_params.id.hex()

    @property
    def kind_value(self) -> int:
        """Raw integer kind."""
        return self._db_params.kind

    @property
    def created_at_secs(self) -> int:
        """Creation timestamp in unix seconds."""
        return self._db_params.created_at

    def known_kind(self) -> EventKind | None:
        """Return the [EventKind][notebrotr.models.constants.EventKind], or ``None`` if unrecognized."""
        return EventKind.classify(self._db_params.kind)

    def _compute_db_params(self) -> EventDbParams:
        inner = self._nostr_event
        tags_list = [list(tag.as_vec()) for tag in inner.tags().to_vec()]
        return EventDbParams(
            id=bytes.fromhex(inner.id().to_hex()),
            pubkey=bytes.fromhex(inner.author().to_hex()),
            created_at=inner.created_at().as_secs(),
            kind=inner.kind().as_u16(),
            tags=json.dumps(tags_list),
            content=inner.content(),
            sig=bytes.fromhex(inner.signature()),
        )

    def to_db_params(self) -> EventDbParams:
        """Return the cached row parameters for the ``event`` table."""
        return self._db_params

    @classmethod
    def from_db_params(cls, params: EventDbParams) -> Event:
        """Rebuild an [Event][notebrotr.models.event.Event] from a stored row.

        The row is re-encoded as NIP-01 JSON and parsed by
        ``nostr_sdk.Event.from_json()``, so the result passes the same
        constructor checks as an event received from a relay.
        """
        inner = NostrEvent.from_json(
            json.dumps(
                {
                    "id": params.id.hex(),
                    "pubkey": params.pubkey.hex(),
                    "created_at": params.created_at,
                    "kind": params.kind,
                    "tags": json.loads(params.tags),
                    "content": params.content,
                    "sig": params.sig.hex(),
                }
            )
        )
        return cls(inner)
