"""Relay session plus the two long-running services.

Services are the top layer, depending on
[notebrotr.core][notebrotr.core], [notebrotr.utils][notebrotr.utils] and
[notebrotr.models][notebrotr.models].

```text
RelaySession --notifications()--> Ingester --put_if_absent()--> EventStore
     ^                                                              |
     +---------- publish() ---------- Api <------- query() ---------+
```

Attributes:
    RelaySession: Signing client, authorial subscription and pull-based
        notification sequence for one relay.
    Ingester: Commits notifications of the configured kinds to the store
        exactly once.
    Api: FastAPI/uvicorn surface for minting keys, publishing notes and
        listing the newest stored notes.

Examples:
    ```python
    async with EventStore(store_config) as store:
        session = RelaySession(identity, relay_config)
        await session.connect()
        ingester = Ingester(store, session)
        api = Api(store, session)
    ```
"""

from .api import Api, ApiConfig, PublishRequest
from .ingester import Ingester, IngesterConfig, IngestStats
from .relay import RelayConfig, RelaySession, SessionState


__all__ = [
    "Api",
    "ApiConfig",
    "IngestStats",
    "Ingester",
    "IngesterConfig",
    "PublishRequest",
    "RelayConfig",
    "RelaySession",
    "SessionState",
]
