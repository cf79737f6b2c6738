"""Fixtures for Sharegram integration tests."""

import pytest
from unittest.mock import MagicMock

from modules.sharegram import InMemoryIntegrationStore, SharegramIntegration


@pytest.fixture
def integration_factory():
    """Factory for SharegramIntegration with a valid api configuration."""

    def _factory(integration_id=1, integration_type="api", configuration=None, **kwargs):
        if configuration is None:
            configuration = {
                "api_key": "key-123",
                "endpoint": "https://partner.example/api/",
            }
        return SharegramIntegration(
            id=integration_id,
            integration_type=integration_type,
            configuration=configuration,
            **kwargs,
        )

    return _factory


@pytest.fixture
def integration_store():
    return InMemoryIntegrationStore()


@pytest.fixture
def mock_session():
    """requests.Session stand-in."""
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def response_factory():
    def _factory(status_code=200, headers=None):
        response = MagicMock()
        response.status_code = status_code
        response.headers = headers or {}
        return response

    return _factory
