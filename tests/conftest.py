"""
Pytest configuration and shared fixtures for notebrotr tests.

Provides:
- Real signed Nostr events built offline with ``nostr_sdk``
- A connected ``EventStore`` on a temporary SQLite file
- Mock store and relay session fixtures for service tests
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from nostr_sdk import EventBuilder, Keys, Kind, Timestamp

from notebrotr.core.store import EventStore, StoreConfig
from notebrotr.models import Event
from notebrotr.services.relay import RelaySession
from notebrotr.utils.keys import Identity


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests.

    pytest installs its own handlers first, so basicConfig alone leaves the
    root logger at WARNING.
    """
    logging.basicConfig(level=logging.DEBUG)
    logging.getLogger().setLevel(logging.DEBUG)


# ============================================================================
# Nostr Fixtures
# ============================================================================


EventFactory = Callable[..., Event]


@pytest.fixture
def keys() -> Keys:
    return Keys.generate()


@pytest.fixture
def identity(keys: Keys) -> Identity:
    return Identity(keys)


@pytest.fixture
def make_event(keys: Keys) -> EventFactory:
    """Build signed events: ``make_event("hi", created_at=100, kind=1, signer=None)``."""

    def _make(
        content: str = "hello nostr",
        *,
        created_at: int | None = None,
        kind: int = 1,
        signer: Keys | None = None,
    ) -> Event:
        builder = (
            EventBuilder.text_note(content) if kind == 1 else EventBuilder(Kind(kind), content)
        )
        ts = created_at if created_at is not None else int(time.time())
        nostr_event = builder.custom_created_at(Timestamp.from_secs(ts)).sign_with_keys(
            signer or keys
        )
        return Event(nostr_event)

    return _make


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def store_config(tmp_path: Path) -> StoreConfig:
    return StoreConfig(path=str(tmp_path / "events.db"))


@pytest.fixture
async def store(store_config: StoreConfig) -> AsyncIterator[EventStore]:
    """Connected store on a temporary database file."""
    event_store = EventStore(store_config)
    await event_store.connect()
    try:
        yield event_store
    finally:
        await event_store.close()


@pytest.fixture
def mock_store() -> MagicMock:
    """EventStore with async methods mocked."""
    mock = MagicMock(spec=EventStore)
    mock.put_if_absent = AsyncMock(return_value=True)
    mock.query = AsyncMock(return_value=[])
    mock.count = AsyncMock(return_value=0)
    mock.connect = AsyncMock()
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def mock_session(identity: Identity) -> MagicMock:
    """RelaySession with publish mocked."""
    mock = MagicMock(spec=RelaySession)
    mock.identity = identity
    mock.publish = AsyncMock(return_value="ab" * 32)
    mock.close = AsyncMock()
    mock.pending_sends = 0
    return mock
