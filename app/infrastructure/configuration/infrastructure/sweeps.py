"""Recovery sweep scheduling settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class SweepSettings(InfrastructureSettings):
    """Intervals and limits for the periodic recovery sweeps.

    Environment Variables:
        SWEEPS_ENABLED: Install the periodic sweeps on start (default: True)
        SWEEP_RETRY_INTERVAL_SECONDS: Retry record replay interval (default: 300s)
        SWEEP_BATCH_JOB_INTERVAL_SECONDS: Failed batch job recovery interval (default: 1800s)
        SWEEP_INTEGRATION_INTERVAL_SECONDS: Integration health interval (default: 600s)
        SWEEP_BATCH_JOB_WINDOW_HOURS: How far back failed jobs are considered (default: 24h)
        SWEEP_BATCH_JOB_LIMIT: Failed jobs considered per sweep (default: 10)
        SWEEP_BATCH_JOB_MAX_RETRIES: Attempts per job recovery (default: 3)
        SWEEP_INTEGRATION_MAX_RETRIES: Attempts per health check (default: 3)
        SWEEP_INTEGRATION_INITIAL_DELAY_SECONDS: Health check backoff start (default: 2s)
    """

    enabled: bool = Field(
        default=True,
        alias="SWEEPS_ENABLED",
        description="Install the periodic recovery sweeps on start",
    )
    retry_interval_seconds: int = Field(
        default=300,
        alias="SWEEP_RETRY_INTERVAL_SECONDS",
        description="Retry record replay interval (seconds, 5 minutes)",
    )
    batch_job_interval_seconds: int = Field(
        default=1800,
        alias="SWEEP_BATCH_JOB_INTERVAL_SECONDS",
        description="Failed batch job recovery interval (seconds, 30 minutes)",
    )
    integration_interval_seconds: int = Field(
        default=600,
        alias="SWEEP_INTEGRATION_INTERVAL_SECONDS",
        description="Integration health check interval (seconds, 10 minutes)",
    )
    batch_job_window_hours: int = Field(
        default=24,
        alias="SWEEP_BATCH_JOB_WINDOW_HOURS",
        description="Only failed jobs created within this window are recovered",
    )
    batch_job_limit: int = Field(
        default=10,
        alias="SWEEP_BATCH_JOB_LIMIT",
        description="Maximum failed jobs recovered per sweep",
    )
    batch_job_max_retries: int = Field(
        default=3,
        alias="SWEEP_BATCH_JOB_MAX_RETRIES",
        description="Attempts per batch job recovery",
    )
    integration_max_retries: int = Field(
        default=3,
        alias="SWEEP_INTEGRATION_MAX_RETRIES",
        description="Attempts per integration health check",
    )
    integration_initial_delay_seconds: float = Field(
        default=2.0,
        alias="SWEEP_INTEGRATION_INITIAL_DELAY_SECONDS",
        description="Initial backoff delay for integration health checks",
    )
