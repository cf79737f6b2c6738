"""Fixtures for infrastructure resilience tests.

Level: Component-level fixtures for resilience module
"""

import pytest

from infrastructure.operations.errors import OperationError
from infrastructure.resilience import (
    CircuitBreakerRegistry,
    DurableRetryStore,
    FallbackCache,
    FallbackDispatcher,
    RetryExecutor,
)


class FlakyOperation:
    """Async operation failing with the queued errors before succeeding.

    Each queued item is raised in turn; once the queue is empty the
    operation returns ``value``.
    """

    def __init__(self, failures=None, value="ok"):
        self.failures = list(failures or [])
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.value


@pytest.fixture
def flaky_operation_factory():
    """Factory for FlakyOperation instances."""

    def _factory(failures=None, value="ok"):
        return FlakyOperation(failures, value)

    return _factory


@pytest.fixture
def network_error():
    """Factory for retryable network errors."""

    def _factory(message="connection refused"):
        return OperationError.network(message)

    return _factory


@pytest.fixture
def breakers(virtual_scheduler):
    """Breaker registry on the virtual clock."""
    return CircuitBreakerRegistry(
        default_threshold=5, default_open_seconds=300.0, clock=virtual_scheduler.now
    )


@pytest.fixture
def fallback_dispatcher(kv_store, virtual_scheduler):
    """Fallback dispatcher backed by the in-memory store."""
    return FallbackDispatcher(FallbackCache(kv_store), clock=virtual_scheduler.now)


@pytest.fixture
def retry_store(kv_store):
    """Durable retry store over the in-memory store."""
    return DurableRetryStore(kv_store)


@pytest.fixture
def executor(breakers, fallback_dispatcher, retry_store, virtual_scheduler, policy_factory):
    """RetryExecutor with jitter disabled."""
    return RetryExecutor(
        breakers=breakers,
        fallbacks=fallback_dispatcher,
        retry_store=retry_store,
        scheduler=virtual_scheduler,
        default_policy=policy_factory(),
        random_source=lambda: 1.0,
    )
