"""Fixtures for infrastructure.logging tests."""

import pytest
from unittest.mock import Mock

from infrastructure.configuration import Settings
from infrastructure.logging import clear_operation_context


@pytest.fixture
def mock_settings():
    """Mock Settings instance for testing."""
    settings = Mock(spec=Settings)
    settings.LOG_LEVEL = "INFO"
    settings.GIT_SHA = "abc123"
    settings.is_production = False
    return settings


@pytest.fixture(autouse=True)
def clean_context():
    """Start and finish every test with an empty logging context."""
    clear_operation_context()
    yield
    clear_operation_context()
