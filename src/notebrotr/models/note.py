"""Caller-facing projection of a stored text note."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from .event import Event


@dataclass(frozen=True, slots=True)
class TextNote:
    """A text note as returned by the REST API.

    The event id and signature are intentionally absent.

    Attributes:
        author_bech32: Author public key in ``npub1...`` form.
        content: Note text.
        created_at: Unix timestamp of creation.
    """

    author_bech32: str
    content: str
    created_at: int

    @classmethod
    def from_event(cls, event: Event) -> TextNote:
        return cls(
            author_bech32=event.author().to_bech32(),
            content=event.content(),
            created_at=event.created_at_secs,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "author_bech32": self.author_bech32,
            "content": self.content,
            "created_at": self.created_at,
        }
