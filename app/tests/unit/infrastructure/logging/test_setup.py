"""Unit tests for infrastructure.logging.setup module."""

import pytest

from infrastructure.logging import configure_logging, get_logger, get_module_logger


@pytest.mark.unit
class TestConfigureLogging:
    """Test suite for configure_logging."""

    def test_returns_logger_in_test_environment(self, mock_settings):
        """A usable logger is returned while output is suppressed."""
        logger = configure_logging(settings=mock_settings)

        assert logger is not None
        logger.info("test_event", key="value")

    def test_does_not_load_settings_under_pytest(self, monkeypatch):
        """Settings are not required when logging is suppressed."""
        monkeypatch.setattr(
            "infrastructure.services.providers.get_settings",
            lambda: pytest.fail("settings should not be loaded"),
        )

        assert configure_logging() is not None


@pytest.mark.unit
class TestLoggerHelpers:
    """Test suite for logger helpers."""

    def test_get_logger_with_name(self):
        """A named logger can log."""
        logger = get_logger("recovery")

        logger.info("named_event")

    def test_get_module_logger(self):
        """The module logger can log with extra keys."""
        logger = get_module_logger()

        logger.warning("module_event", attempt=1)
