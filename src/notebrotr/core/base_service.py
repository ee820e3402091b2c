"""
Abstract base class for long-running notebrotr services.

``BaseService[ConfigT]`` provides the lifecycle shared by the ingester and
the API: structured logging via [Logger][notebrotr.core.logger.Logger],
graceful shutdown via ``asyncio.Event``, interval-based cycling with
[run_forever()][notebrotr.core.base_service.BaseService.run_forever],
consecutive failure limits, and Prometheus counters and gauges.

See Also:
    [EventStore][notebrotr.core.store.EventStore]: Store handle injected
        into every service.
    [BaseServiceConfig][notebrotr.core.base_service.BaseServiceConfig]: Base
        configuration model for all services.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any, ClassVar, Generic, Self, TypeVar, cast

from pydantic import BaseModel, Field, ValidationError

from notebrotr.models.constants import ServiceName

from .exceptions import ConfigurationError
from .logger import Logger
from .metrics import SERVICE_COUNTER, SERVICE_GAUGE, SERVICE_INFO, MetricsConfig
from .store import EventStore
from .yaml import load_yaml


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class BaseServiceConfig(BaseModel):
    """Base configuration shared by all services.

    The fields control the
    [run_forever()][notebrotr.core.base_service.BaseService.run_forever]
    cycle interval, failure tolerance and metrics exposition.
    """

    interval: float = Field(
        default=60.0,
        ge=1.0,
        description="Seconds between run cycles",
    )
    max_consecutive_failures: int = Field(
        default=5,
        ge=0,
        description="Stop after this many consecutive errors (0 = unlimited)",
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics configuration",
    )


ConfigT = TypeVar("ConfigT", bound=BaseServiceConfig)


class BaseService(ABC, Generic[ConfigT]):
    """Abstract base class for all notebrotr services.

    Subclasses set ``SERVICE_NAME`` and ``CONFIG_CLASS`` and implement
    [run()][notebrotr.core.base_service.BaseService.run].

    Attributes:
        SERVICE_NAME: Identifier used in logging and metrics labels.
        CONFIG_CLASS: Pydantic model used by the factory methods.
        _store: Shared [EventStore][notebrotr.core.store.EventStore].
        _config: Typed service configuration.
        _logger: [Logger][notebrotr.core.logger.Logger] named after the service.
        _shutdown_event: Clear while running, set once shutdown is requested.
    """

    SERVICE_NAME: ClassVar[ServiceName]
    CONFIG_CLASS: ClassVar[type[BaseModel]]

    def __init__(self, store: EventStore, config: ConfigT | None = None) -> None:
        self._store = store
        self._config: ConfigT = (
            config if config is not None else cast("ConfigT", self.CONFIG_CLASS())
        )
        self._logger = Logger(self.SERVICE_NAME)
        self._shutdown_event = asyncio.Event()

    @property
    def config(self) -> ConfigT:
        """The typed service configuration (read-only)."""
        return self._config

    @abstractmethod
    async def run(self) -> None:
        """Execute one cycle of the service's main logic."""
        ...

    def request_shutdown(self) -> None:
        """Request a graceful shutdown. Safe to call from signal handlers."""
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        """Whether the service is still active (shutdown not yet requested)."""
        return not self._shutdown_event.is_set()

    async def wait(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Wait for a shutdown signal or for ``timeout`` seconds.

        Returns:
            True if shutdown was requested during the wait, False if the
            timeout expired.
        """
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            return False

    async def run_forever(self) -> None:
        """Call [run()][notebrotr.core.base_service.BaseService.run] every ``config.interval`` seconds.

        Exits when shutdown is requested or when
        ``config.max_consecutive_failures`` cycles in a row have failed
        (``0`` disables the limit). ``CancelledError``, ``KeyboardInterrupt``
        and ``SystemExit`` always propagate without being counted.

        Metrics: ``cycles_success``, ``cycles_failed`` and
        ``errors_{ExceptionType}`` counters; ``consecutive_failures`` and
        ``last_cycle_timestamp`` gauges.
        """
        interval = self._config.interval
        max_consecutive_failures = self._config.max_consecutive_failures

        if self._config.metrics.enabled:
            SERVICE_INFO.info({"service": self.SERVICE_NAME})

        self._logger.info(
            "run_forever_started",
            interval=interval,
            max_consecutive_failures=max_consecutive_failures,
        )

        consecutive_failures = 0

        while self.is_running:
            cycle_start = time.monotonic()

            try:
                await self.run()

                self.inc_counter("cycles_success")
                self.set_gauge("last_cycle_timestamp", time.time())
                self.set_gauge("consecutive_failures", 0)

                consecutive_failures = 0
                self._logger.debug(
                    "cycle_completed",
                    duration_s=round(time.monotonic() - cycle_start, 3),
                    next_cycle_s=interval,
                )

            except (asyncio.CancelledError, KeyboardInterrupt, SystemExit):
                raise

            except Exception as e:  # top-level error boundary for run_forever
                consecutive_failures += 1

                self.inc_counter("cycles_failed")
                self.set_gauge("consecutive_failures", consecutive_failures)
                self.inc_counter(f"errors_{type(e).__name__}")

                self._logger.error(
                    "run_cycle_error",
                    error=str(e),
                    consecutive_failures=consecutive_failures,
                )

                if (
                    max_consecutive_failures > 0
                    and consecutive_failures >= max_consecutive_failures
                ):
                    self._logger.critical(
                        "max_consecutive_failures_reached",
                        failures=consecutive_failures,
                        limit=max_consecutive_failures,
                    )
                    break

            if await self.wait(interval):
                break

        self._logger.info("run_forever_stopped")

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str, store: EventStore, **kwargs: Any) -> Self:
        """Create a service from a YAML configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the YAML or its values are invalid.
        """
        return cls.from_dict(load_yaml(config_path), store=store, **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], store: EventStore, **kwargs: Any) -> Self:
        """Create a service from a configuration dictionary.

        Raises:
            ConfigurationError: If ``data`` does not validate against
                ``CONFIG_CLASS``.
        """
        try:
            config = cast("ConfigT", cls.CONFIG_CLASS(**data))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {cls.SERVICE_NAME} configuration: {e}") from e
        return cls(store=store, config=config, **kwargs)

    # -------------------------------------------------------------------------
    # Context Manager
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        self._shutdown_event.clear()
        self._logger.info("service_started")
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self._shutdown_event.set()
        self._logger.info("service_stopped")

    # -------------------------------------------------------------------------
    # Custom Metrics
    # -------------------------------------------------------------------------

    def set_gauge(self, name: str, value: float) -> None:
        """Set a named gauge for this service. No-op when metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_GAUGE.labels(service=self.SERVICE_NAME, name=name).set(value)

    def inc_counter(self, name: str, value: float = 1) -> None:
        """Increment a named counter for this service. No-op when metrics are disabled."""
        if not self._config.metrics.enabled:
            return
        SERVICE_COUNTER.labels(service=self.SERVICE_NAME, name=name).inc(value)
