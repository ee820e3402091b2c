r"""notebrotr -- Nostr note bridge with a local event archive.

Keeps a signing identity, publishes text notes through a relay, archives
the notes it receives into an embedded database, and exposes the result
over a small REST API.

Layers follow the same downward-only import rule as the rest of the
project:

```text
              services         Relay session, ingester, REST API
             /        \
          core        utils    Store, logging, metrics / keys, transport
             \        /
              models           Frozen dataclasses (no I/O)
```

Note:
    Top-level imports (``from notebrotr import EventStore``) use lazy
    loading and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("notebrotr")

__all__ = [
    "Api",
    "ApiConfig",
    "Event",
    "EventFilter",
    "EventKind",
    "EventStore",
    "Identity",
    "Ingester",
    "IngesterConfig",
    "Logger",
    "RelayConfig",
    "RelaySession",
    "StoreConfig",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "EventStore": ("notebrotr.core", "EventStore"),
    "StoreConfig": ("notebrotr.core", "StoreConfig"),
    "Logger": ("notebrotr.core", "Logger"),
    "Event": ("notebrotr.models", "Event"),
    "EventFilter": ("notebrotr.models", "EventFilter"),
    "EventKind": ("notebrotr.models", "EventKind"),
    "Identity": ("notebrotr.utils.keys", "Identity"),
    "Api": ("notebrotr.services", "Api"),
    "ApiConfig": ("notebrotr.services", "ApiConfig"),
    "Ingester": ("notebrotr.services", "Ingester"),
    "IngesterConfig": ("notebrotr.services", "IngesterConfig"),
    "RelayConfig": ("notebrotr.services", "RelayConfig"),
    "RelaySession": ("notebrotr.services", "RelaySession"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'notebrotr' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
