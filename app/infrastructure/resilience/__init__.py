"""Resilient execution core.

Retry with exponential backoff and full jitter, per-operation circuit
breaking, per-attempt timeouts, durable retry bookkeeping and fallback
resolution, composed by ResilienceService.
"""

from infrastructure.resilience.backoff import calculate_backoff
from infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitState,
)
from infrastructure.resilience.executor import RetryExecutor
from infrastructure.resilience.factory import create_resilience_service
from infrastructure.resilience.fallback import (
    FallbackCache,
    FallbackDispatcher,
    FallbackHandler,
)
from infrastructure.resilience.policy import OperationPolicy
from infrastructure.resilience.retry import (
    DurableRetryStore,
    RetryChannel,
    RetryEvent,
    RetryRecord,
    RetrySweep,
)
from infrastructure.resilience.service import ResilienceService
from infrastructure.resilience.timeout import run_with_timeout

__all__ = [
    # Policy and backoff
    "OperationPolicy",
    "calculate_backoff",
    "run_with_timeout",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    # Fallback
    "FallbackCache",
    "FallbackDispatcher",
    "FallbackHandler",
    # Retry System
    "RetryRecord",
    "RetryEvent",
    "DurableRetryStore",
    "RetryChannel",
    "RetrySweep",
    # Core
    "RetryExecutor",
    "ResilienceService",
    "create_resilience_service",
]
