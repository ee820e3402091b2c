"""Tests for models.event module."""

import json

import pytest
from nostr_sdk import EventBuilder, Keys, Tag

from notebrotr.models import Event, EventDbParams, EventKind


class TestConstruction:
    """Event construction and validation."""

    def test_wraps_signed_event(self, make_event):
        event = make_event("hello")
        assert event.content() == "hello"
        assert event.verify()

    def test_rejects_non_sdk_event(self):
        with pytest.raises(TypeError, match="nostr_sdk|Event"):
            Event("not an event")  # type: ignore[arg-type]

    def test_keeps_nul_in_content(self, keys: Keys):
        nostr_event = EventBuilder.text_note("a\x00b").sign_with_keys(keys)
        event = Event(nostr_event)
        assert event.content() == "a\x00b"
        assert event.to_db_params().content == "a\x00b"

    def test_keeps_nul_in_tags(self, keys: Keys):
        nostr_event = (
            EventBuilder.text_note("ok").tags([Tag.parse(["t", "x\x00y"])]).sign_with_keys(keys)
        )
        event = Event(nostr_event)
        assert json.loads(event.to_db_params().tags) == [["t", "x\x00y"]]

    def test_is_immutable(self, make_event):
        event = make_event()
        with pytest.raises(AttributeError):
            event._nostr_event = None  # type: ignore[misc]


class TestAccessors:
    """Cached scalar accessors."""

    def test_id_hex_matches_sdk(self, make_event):
        event = make_event()
        assert event.id_hex == event.id().to_hex()
        assert len(event.id_hex) == 64

    def test_kind_and_created_at(self, make_event):
        event = make_event(created_at=1_700_000_000)
        assert event.kind_value == 1
        assert event.created_at_secs == 1_700_000_000

    def test_known_kind_text_note(self, make_event):
        assert make_event().known_kind() is EventKind.TEXT_NOTE

    def test_known_kind_unrecognized(self, make_event):
        assert make_event(kind=7).known_kind() is None

    def test_delegates_unknown_attribute_error(self, make_event):
        with pytest.raises(AttributeError, match="no attribute 'nope'"):
            _ = make_event().nope


class TestDbParams:
    """Event.to_db_params() and Event.from_db_params()."""

    def test_params_layout(self, make_event, keys: Keys):
        event = make_event("row", created_at=1_700_000_123)
        params = event.to_db_params()

        assert isinstance(params, EventDbParams)
        assert params.id == bytes.fromhex(event.id_hex)
        assert params.pubkey == bytes.fromhex(keys.public_key().to_hex())
        assert params.created_at == 1_700_000_123
        assert params.kind == 1
        assert json.loads(params.tags) == []
        assert params.content == "row"
        assert len(params.sig) == 64

    def test_params_are_cached(self, make_event):
        event = make_event()
        assert event.to_db_params() is event.to_db_params()

    def test_rebuild_from_row(self, make_event):
        event = make_event("stored note", created_at=1_700_000_000)
        rebuilt = Event.from_db_params(event.to_db_params())

        assert rebuilt.id_hex == event.id_hex
        assert rebuilt.content() == "stored note"
        assert rebuilt.author().to_hex() == event.author().to_hex()
        assert rebuilt.verify()

    def test_rebuild_preserves_tags(self, keys: Keys):
        nostr_event = (
            EventBuilder.text_note("tagged").tags([Tag.parse(["t", "nostr"])]).sign_with_keys(keys)
        )
        event = Event(nostr_event)
        rebuilt = Event.from_db_params(event.to_db_params())
        assert json.loads(rebuilt.to_db_params().tags) == [["t", "nostr"]]
