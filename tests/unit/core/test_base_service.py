"""
Unit tests for core.base_service module.

Tests:
- BaseService initialization with EventStore and config
- Factory methods (from_yaml, from_dict) and configuration errors
- run_forever() cycling, failure limits and shutdown
- wait() interruptible sleep
- Context manager support (__aenter__/__aexit__)
- Metric helpers when metrics are enabled or disabled
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from pydantic import Field

from notebrotr.core.base_service import BaseService, BaseServiceConfig
from notebrotr.core.exceptions import ConfigurationError
from notebrotr.core.metrics import MetricsConfig
from notebrotr.core.store import EventStore


class ConcreteServiceConfig(BaseServiceConfig):
    """Test configuration inheriting from BaseServiceConfig."""

    batch: int = Field(default=100, ge=1)


class ConcreteService(BaseService[ConcreteServiceConfig]):
    """Test implementation."""

    SERVICE_NAME = "test_service"
    CONFIG_CLASS = ConcreteServiceConfig

    def __init__(self, store: EventStore, config: ConcreteServiceConfig | None = None):
        super().__init__(store=store, config=config or ConcreteServiceConfig())
        self.run_count = 0
        self.should_fail = False
        self.fail_count = 0

    async def run(self):
        self.run_count += 1
        if self.should_fail:
            self.fail_count += 1
            raise RuntimeError("Simulated failure")


# ============================================================================
# Configuration
# ============================================================================


class TestBaseServiceConfig:
    """BaseServiceConfig defaults and validation."""

    def test_defaults(self):
        config = BaseServiceConfig()
        assert config.interval == 60.0
        assert config.max_consecutive_failures == 5
        assert config.metrics.enabled is False

    def test_interval_minimum(self):
        with pytest.raises(ValueError):
            BaseServiceConfig(interval=0.5)

    def test_max_consecutive_failures_zero_allowed(self):
        assert BaseServiceConfig(max_consecutive_failures=0).max_consecutive_failures == 0


# ============================================================================
# Initialization and Factories
# ============================================================================


class TestInit:
    def test_with_config(self, mock_store):
        config = ConcreteServiceConfig(interval=120.0, batch=50)
        service = ConcreteService(store=mock_store, config=config)
        assert service.config is config
        assert service._store is mock_store

    def test_with_defaults(self, mock_store):
        service = ConcreteService(store=mock_store)
        assert service.config.interval == 60.0
        assert service.config.batch == 100


class TestFactoryMethods:
    def test_from_dict(self, mock_store):
        service = ConcreteService.from_dict({"interval": 90.0, "batch": 7}, store=mock_store)
        assert service.config.interval == 90.0
        assert service.config.batch == 7

    def test_from_dict_invalid_raises_configuration_error(self, mock_store):
        with pytest.raises(ConfigurationError, match="test_service"):
            ConcreteService.from_dict({"batch": 0}, store=mock_store)

    def test_from_yaml(self, mock_store, tmp_path):
        config_file = tmp_path / "service.yaml"
        config_file.write_text("interval: 120.0\nbatch: 75\n")
        service = ConcreteService.from_yaml(str(config_file), store=mock_store)
        assert service.config.interval == 120.0
        assert service.config.batch == 75

    def test_from_yaml_file_not_found(self, mock_store):
        with pytest.raises(FileNotFoundError):
            ConcreteService.from_yaml("/nonexistent/path/config.yaml", store=mock_store)


# ============================================================================
# Lifecycle
# ============================================================================


class TestContextManager:
    async def test_starts_and_stops(self, mock_store):
        service = ConcreteService(store=mock_store)
        async with service:
            assert service.is_running is True
        assert service.is_running is False

    async def test_clears_shutdown_event(self, mock_store):
        service = ConcreteService(store=mock_store)
        service.request_shutdown()
        async with service:
            assert service.is_running is True


class TestShutdown:
    def test_request_shutdown(self, mock_store):
        service = ConcreteService(store=mock_store)
        assert service.is_running is True
        service.request_shutdown()
        assert service.is_running is False

    async def test_wait_returns_true_on_shutdown(self, mock_store):
        service = ConcreteService(store=mock_store)

        async def request_shutdown_after_delay():
            await asyncio.sleep(0.05)
            service.request_shutdown()

        task = asyncio.create_task(request_shutdown_after_delay())
        assert await service.wait(timeout=1.0) is True
        await task

    async def test_wait_returns_false_on_timeout(self, mock_store):
        service = ConcreteService(store=mock_store)
        assert await service.wait(timeout=0.01) is False


class TestRunForever:
    async def test_executes_run_until_shutdown(self, mock_store):
        service = ConcreteService(store=mock_store)

        async def mock_wait(timeout):
            return True

        with patch.object(service, "wait", mock_wait):
            async with service:
                await service.run_forever()
        assert service.run_count == 1

    async def test_stops_on_max_failures(self, mock_store):
        config = ConcreteServiceConfig(max_consecutive_failures=3)
        service = ConcreteService(store=mock_store, config=config)
        service.should_fail = True

        async def mock_wait(timeout):
            return False

        with patch.object(service, "wait", mock_wait):
            async with service:
                await service.run_forever()
        assert service.fail_count == 3

    async def test_unlimited_failures_when_zero(self, mock_store):
        config = ConcreteServiceConfig(max_consecutive_failures=0)
        service = ConcreteService(store=mock_store, config=config)
        service.should_fail = True

        async def mock_wait(timeout):
            return service.fail_count >= 10

        with patch.object(service, "wait", mock_wait):
            async with service:
                await service.run_forever()
        assert service.fail_count == 10

    async def test_success_resets_failure_streak(self, mock_store):
        config = ConcreteServiceConfig(max_consecutive_failures=2)
        service = ConcreteService(store=mock_store, config=config)

        async def flaky_wait(timeout):
            # fail, succeed, fail, succeed, ... never two failures in a row
            service.should_fail = not service.should_fail
            return service.run_count >= 6

        with patch.object(service, "wait", flaky_wait):
            async with service:
                await service.run_forever()
        assert service.run_count == 6
        assert service.fail_count == 3

    async def test_passes_interval_to_wait(self, mock_store):
        service = ConcreteService(store=mock_store, config=ConcreteServiceConfig(interval=42.0))
        recorded: list[float] = []

        async def mock_wait(timeout):
            recorded.append(timeout)
            return True

        with patch.object(service, "wait", mock_wait):
            await service.run_forever()
        assert recorded == [42.0]

    async def test_cancelled_error_propagates(self, mock_store):
        service = ConcreteService(store=mock_store)

        async def cancelled_run():
            raise asyncio.CancelledError

        with patch.object(service, "run", cancelled_run), pytest.raises(asyncio.CancelledError):
            await service.run_forever()


# ============================================================================
# Metrics
# ============================================================================


class TestMetricHelpers:
    def test_noop_when_disabled(self, mock_store):
        service = ConcreteService(store=mock_store)
        with patch("notebrotr.core.base_service.SERVICE_COUNTER") as counter:
            service.inc_counter("events_stored")
        counter.labels.assert_not_called()

    def test_counter_when_enabled(self, mock_store):
        config = ConcreteServiceConfig(metrics=MetricsConfig(enabled=True))
        service = ConcreteService(store=mock_store, config=config)
        with patch("notebrotr.core.base_service.SERVICE_COUNTER") as counter:
            service.inc_counter("events_stored", 2)
        counter.labels.assert_called_once_with(service="test_service", name="events_stored")
        counter.labels.return_value.inc.assert_called_once_with(2)

    def test_gauge_when_enabled(self, mock_store):
        config = ConcreteServiceConfig(metrics=MetricsConfig(enabled=True))
        service = ConcreteService(store=mock_store, config=config)
        gauge = MagicMock()
        with patch("notebrotr.core.base_service.SERVICE_GAUGE", gauge):
            service.set_gauge("consecutive_failures", 0)
        gauge.labels.return_value.set.assert_called_once_with(0)


class TestAbstract:
    def test_cannot_instantiate_base(self, mock_store):
        with pytest.raises(TypeError):
            BaseService(store=mock_store)

    def test_must_implement_run(self, mock_store):
        class IncompleteService(BaseService):
            SERVICE_NAME = "incomplete"
            CONFIG_CLASS = BaseServiceConfig

        with pytest.raises(TypeError):
            IncompleteService(store=mock_store)
