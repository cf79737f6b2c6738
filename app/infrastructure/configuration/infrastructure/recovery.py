"""Resilient-execution infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class RecoverySettings(InfrastructureSettings):
    """Default operation policy and durable store configuration.

    Provides the defaults every ``execute_with_retry`` call starts from before
    per-call overrides are applied.

    Environment Variables:
        RECOVERY_BACKEND: Durable store backend - 'memory' or 'redis'
        RECOVERY_MAX_RETRIES: Maximum attempts per call (default: 5)
        RECOVERY_INITIAL_DELAY_SECONDS: First backoff delay (default: 1s)
        RECOVERY_MAX_DELAY_SECONDS: Backoff cap (default: 60s)
        RECOVERY_BACKOFF_MULTIPLIER: Exponential growth factor (default: 2)
        RECOVERY_JITTER_ENABLED: Use full jitter (default: True)
        RECOVERY_TIMEOUT_SECONDS: Per-attempt timeout (default: 30s)
        RECOVERY_CIRCUIT_BREAKER_THRESHOLD: Failures before opening (default: 5)
        RECOVERY_CIRCUIT_BREAKER_OPEN_SECONDS: Open duration (default: 300s)
        RECOVERY_RETRY_RECORD_TTL_SECONDS: Retry record lifetime (default: 3600s)
        RECOVERY_FALLBACK_CACHE_TTL_SECONDS: Cached result lifetime (default: 3600s)
        RECOVERY_RETRY_QUEUE_MAXSIZE: Undelivered retry event buffer (default: 1000)

    Exponential Backoff:
        Delay calculation: min(initial_delay * multiplier ^ (attempt - 1), max_delay)

        Example with defaults (initial=1s, multiplier=2, max=60s):
            Attempt 1: 1s
            Attempt 2: 2s
            Attempt 3: 4s
            Attempt 4: 8s
            Attempt 7 and later: 60s

        With jitter enabled the actual delay is uniform in [0, delay].
    """

    backend: str = Field(
        default="memory",
        alias="RECOVERY_BACKEND",
        description="Durable store backend: 'memory' or 'redis'",
    )
    max_retries: int = Field(
        default=5,
        alias="RECOVERY_MAX_RETRIES",
        description="Maximum attempts per execute_with_retry call",
    )
    initial_delay_seconds: float = Field(
        default=1.0,
        alias="RECOVERY_INITIAL_DELAY_SECONDS",
        description="Backoff delay after the first failed attempt (seconds)",
    )
    max_delay_seconds: float = Field(
        default=60.0,
        alias="RECOVERY_MAX_DELAY_SECONDS",
        description="Upper bound for the backoff delay (seconds)",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        alias="RECOVERY_BACKOFF_MULTIPLIER",
        description="Exponential backoff multiplier",
    )
    jitter_enabled: bool = Field(
        default=True,
        alias="RECOVERY_JITTER_ENABLED",
        description="Randomize delays with full jitter",
    )
    timeout_seconds: float = Field(
        default=30.0,
        alias="RECOVERY_TIMEOUT_SECONDS",
        description="Per-attempt timeout (seconds)",
    )
    circuit_breaker_threshold: int = Field(
        default=5,
        alias="RECOVERY_CIRCUIT_BREAKER_THRESHOLD",
        description="Consecutive failures before a circuit opens",
    )
    circuit_breaker_open_seconds: float = Field(
        default=300.0,
        alias="RECOVERY_CIRCUIT_BREAKER_OPEN_SECONDS",
        description="How long a circuit stays open before a probe (seconds, 5 minutes)",
    )
    retry_record_ttl_seconds: int = Field(
        default=3600,
        alias="RECOVERY_RETRY_RECORD_TTL_SECONDS",
        description="Time-to-live for durable retry records (seconds, 1 hour)",
    )
    fallback_cache_ttl_seconds: int = Field(
        default=3600,
        alias="RECOVERY_FALLBACK_CACHE_TTL_SECONDS",
        description="Time-to-live for cached last-known-good results (seconds)",
    )
    retry_queue_maxsize: int = Field(
        default=1000,
        alias="RECOVERY_RETRY_QUEUE_MAXSIZE",
        description="Maximum undelivered retry events buffered in memory",
    )
