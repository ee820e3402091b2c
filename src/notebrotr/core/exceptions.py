"""notebrotr exception hierarchy.

Typed exceptions let callers tell fatal startup failures apart from
per-operation failures that are contained and reported, and allow
``CancelledError`` to propagate untouched.

Exception hierarchy:

```text
NotebrotrError (base -- never raised directly)
├── ConfigurationError          -- credential file, YAML, invalid settings
├── StorageError                -- event store failures
│   ├── StorageUnavailableError -- database cannot be opened (fatal)
│   ├── StorageWriteError       -- a single insert failed (recoverable)
│   └── StorageQueryError       -- a read failed (reported to caller)
├── ConnectivityError           -- relay/network failures
│   └── RelayConnectionError    -- relay unreachable or handshake failed
└── PublishingError             -- a note could not be sent
```

See Also:
    [EventStore][notebrotr.core.store.EventStore]: Raises the
        [StorageError][notebrotr.core.exceptions.StorageError] family.
    [RelaySession][notebrotr.services.relay.RelaySession]: Raises
        [RelayConnectionError][notebrotr.core.exceptions.RelayConnectionError]
        and [PublishingError][notebrotr.core.exceptions.PublishingError].
"""

from __future__ import annotations


class NotebrotrError(Exception):
    """Base exception for all notebrotr errors. Never raised directly."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(NotebrotrError):
    """Invalid or unreadable configuration (credential file, YAML, settings).

    Always fatal at startup. A missing credential file is *not* a
    configuration error; see
    [load_or_create_identity()][notebrotr.utils.keys.load_or_create_identity].
    """


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StorageError(NotebrotrError):
    """Base for all event store errors."""


class StorageUnavailableError(StorageError):
    """The database file cannot be opened or initialized, or is not open."""


class StorageWriteError(StorageError):
    """A single event could not be persisted.

    Recoverable: the ingester logs it and moves on to the next notification.
    """


class StorageQueryError(StorageError):
    """A read query failed. Reported to the API caller as a server error."""


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(NotebrotrError):
    """Base for all relay/network connectivity errors."""


class RelayConnectionError(ConnectivityError):
    """The relay is unreachable or the WebSocket handshake failed.

    Fatal at startup: no reconnect loop is attempted.
    """


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


class PublishingError(NotebrotrError):
    """A note could not be signed or handed to the relay transport.

    Recoverable: reported to the request caller, the process keeps running.
    """
