"""Core layer providing the foundation for all notebrotr services.

Sits in the middle of the import graph: depends only on
``notebrotr.models`` and is depended upon by ``notebrotr.services``.

Attributes:
    EventStore: Embedded SQLite event archive with atomic insert-or-ignore.
        See [EventStore][notebrotr.core.store.EventStore].
    BaseService: Abstract generic base class with lifecycle management
        ([run()][notebrotr.core.base_service.BaseService.run] /
        [run_forever()][notebrotr.core.base_service.BaseService.run_forever] /
        shutdown), factory methods and Prometheus metrics integration.
    Logger: Structured logger supporting key=value and JSON output modes.
    MetricsServer: Prometheus ``/metrics`` HTTP endpoint.
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.

Examples:
    ```python
    from notebrotr.core import EventStore, StoreConfig

    async with EventStore(StoreConfig(path="notes.db")) as store:
        await store.count(EventFilter(kind=1))
    ```
"""

from .base_service import (
    BaseService,
    BaseServiceConfig,
    ConfigT,
)
from .exceptions import (
    ConfigurationError,
    ConnectivityError,
    NotebrotrError,
    PublishingError,
    RelayConnectionError,
    StorageError,
    StorageQueryError,
    StorageUnavailableError,
    StorageWriteError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    REQUEST_DURATION_SECONDS,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
    MetricsServer,
    start_metrics_server,
)
from .store import EventStore, StoreConfig, StoreTimeoutsConfig
from .yaml import load_yaml


__all__ = [
    "REQUEST_DURATION_SECONDS",
    "SERVICE_COUNTER",
    "SERVICE_GAUGE",
    "SERVICE_INFO",
    "BaseService",
    "BaseServiceConfig",
    "ConfigT",
    "ConfigurationError",
    "ConnectivityError",
    "EventStore",
    "Logger",
    "MetricsConfig",
    "MetricsServer",
    "NotebrotrError",
    "PublishingError",
    "RelayConnectionError",
    "StorageError",
    "StorageQueryError",
    "StorageUnavailableError",
    "StorageWriteError",
    "StoreConfig",
    "StoreTimeoutsConfig",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
    "start_metrics_server",
]
