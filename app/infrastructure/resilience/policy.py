"""Per-call resilience policy.

``OperationPolicy`` bundles everything one ``execute_with_retry`` call needs:
retry cap, backoff shape, per-attempt timeout and circuit-breaker tuning.
Defaults come from ``RecoverySettings``; callers override single fields.

Example:
    # Default policy from settings
    policy = OperationPolicy.from_settings(settings.recovery)

    # Per-call overrides
    health_policy = policy.with_overrides(max_retries=3, initial_delay_seconds=2.0)
"""

from dataclasses import dataclass, fields, replace
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from infrastructure.configuration import RecoverySettings


@dataclass(frozen=True)
class OperationPolicy:
    """Resilience policy for one class of operation.

    Attributes:
        max_retries: Maximum number of attempts (including the first one)
        initial_delay_seconds: Backoff delay before the second attempt
        max_delay_seconds: Cap for the exponential backoff delay
        backoff_multiplier: Growth factor between consecutive delays
        jitter_enabled: Use full jitter (uniform in [0, delay])
        timeout_seconds: Deadline for a single attempt
        circuit_breaker_threshold: Consecutive failures that open the breaker
        circuit_breaker_open_seconds: How long the breaker stays open
        retry_record_ttl_seconds: Lifetime of a persisted retry record
        cache_results: Store successful results as last-known-good fallbacks
    """

    max_retries: int = 5
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 60.0
    backoff_multiplier: float = 2.0
    jitter_enabled: bool = True
    timeout_seconds: float = 30.0
    circuit_breaker_threshold: int = 5
    circuit_breaker_open_seconds: float = 300.0
    retry_record_ttl_seconds: int = 3600
    cache_results: bool = False

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.initial_delay_seconds < 0:
            raise ValueError("initial_delay_seconds must be non-negative")
        if self.max_delay_seconds < self.initial_delay_seconds:
            raise ValueError("max_delay_seconds must be >= initial_delay_seconds")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be at least 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.circuit_breaker_threshold < 1:
            raise ValueError("circuit_breaker_threshold must be at least 1")
        if self.circuit_breaker_open_seconds < 0:
            raise ValueError("circuit_breaker_open_seconds must be non-negative")
        if self.retry_record_ttl_seconds < 1:
            raise ValueError("retry_record_ttl_seconds must be at least 1")

    @classmethod
    def from_settings(cls, recovery: "RecoverySettings") -> "OperationPolicy":
        return cls(
            max_retries=recovery.max_retries,
            initial_delay_seconds=recovery.initial_delay_seconds,
            max_delay_seconds=recovery.max_delay_seconds,
            backoff_multiplier=recovery.backoff_multiplier,
            jitter_enabled=recovery.jitter_enabled,
            timeout_seconds=recovery.timeout_seconds,
            circuit_breaker_threshold=recovery.circuit_breaker_threshold,
            circuit_breaker_open_seconds=recovery.circuit_breaker_open_seconds,
            retry_record_ttl_seconds=recovery.retry_record_ttl_seconds,
        )

    def with_overrides(self, **overrides: Any) -> "OperationPolicy":
        """Return a copy with the given fields replaced.

        Raises:
            ValueError: On an unknown field name or an invalid value.
            TypeError: On a value of the wrong type.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown policy fields: {', '.join(sorted(unknown))}")
        if not overrides:
            return self
        return replace(self, **overrides)
