import sys
from pathlib import Path

# Ensure the application package root is on sys.path so importing application
# modules (e.g. `infrastructure.resilience`) works during pytest collection.
project_root = str(Path(__file__).resolve().parents[1])
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import pytest

from infrastructure.configuration import Settings
from infrastructure.logging import configure_logging
from infrastructure.persistence import InMemoryKeyValueStore
from infrastructure.resilience import OperationPolicy, ResilienceService
from infrastructure.scheduling import VirtualScheduler


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Configure structlog once; output is suppressed under pytest."""
    configure_logging()


@pytest.fixture
def settings_factory(monkeypatch):
    """Factory building Settings from environment variable overrides."""

    def _factory(**env: object) -> Settings:
        for name, value in env.items():
            monkeypatch.setenv(name, str(value))
        return Settings()

    return _factory


@pytest.fixture
def virtual_scheduler():
    """Deterministic scheduler; sleeps are instant and recorded."""
    return VirtualScheduler()


@pytest.fixture
def kv_store(virtual_scheduler):
    """In-memory key-value store whose TTL clock follows the virtual scheduler."""
    return InMemoryKeyValueStore(clock=lambda: virtual_scheduler.now().timestamp())


@pytest.fixture
def policy_factory():
    """Factory for OperationPolicy with jitter off by default."""

    def _factory(**overrides) -> OperationPolicy:
        values = {
            "max_retries": 5,
            "initial_delay_seconds": 1.0,
            "max_delay_seconds": 60.0,
            "backoff_multiplier": 2.0,
            "jitter_enabled": False,
            "timeout_seconds": 30.0,
            "circuit_breaker_threshold": 5,
            "circuit_breaker_open_seconds": 300.0,
        }
        values.update(overrides)
        return OperationPolicy(**values)

    return _factory


@pytest.fixture
def service_factory(kv_store, virtual_scheduler, policy_factory):
    """Factory for a ResilienceService on the virtual scheduler."""

    def _factory(random_source=lambda: 1.0, **policy_overrides) -> ResilienceService:
        return ResilienceService(
            policy=policy_factory(**policy_overrides),
            kv_store=kv_store,
            scheduler=virtual_scheduler,
            random_source=random_source,
        )

    return _factory


@pytest.fixture
def resilience_service(service_factory):
    """ResilienceService with the default test policy."""
    return service_factory()
