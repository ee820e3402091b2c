"""Shared fixtures and helpers for services.api test package."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from notebrotr.services.api.service import Api, ApiConfig


@pytest.fixture
def api_config() -> ApiConfig:
    """Minimal API config for testing."""
    return ApiConfig(
        interval=60.0,
        host="127.0.0.1",
        port=9999,
        default_limit=10,
        max_limit=10,
    )


@pytest.fixture
def api_service(mock_store: MagicMock, mock_session: MagicMock, api_config: ApiConfig) -> Api:
    """Api service over a mocked store and relay session."""
    return Api(store=mock_store, session=mock_session, config=api_config)


@pytest.fixture
def test_client(api_service: Api) -> TestClient:
    """FastAPI TestClient from the Api service."""
    return TestClient(api_service.app)
