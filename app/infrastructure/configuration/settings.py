"""Recovery service configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Integration settings
from infrastructure.configuration.integrations import RedisSettings

# Infrastructure settings
from infrastructure.configuration.infrastructure import (
    RecoverySettings,
    SweepSettings,
)


class Settings(BaseSettings):
    """Recovery service configuration settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object.
    Settings are organized by concern:

    - **Integrations**: External service connections (Redis)
    - **Infrastructure**: Core system configuration (operation policy, sweeps)

    Environment Variables:
        PREFIX: Environment prefix for non-production deployments
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        # Access integration settings
        redis_host = settings.redis.REDIS_HOST

        # Access infrastructure settings
        max_retries = settings.recovery.max_retries
        if settings.sweeps.enabled:
            interval = settings.sweeps.retry_interval_seconds
        ```
    """

    # Application-level settings
    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Integration settings
    redis: RedisSettings

    # Infrastructure settings
    recovery: RecoverySettings
    sweeps: SweepSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            # Integrations
            "redis": RedisSettings,
            # Infrastructure
            "recovery": RecoverySettings,
            "sweeps": SweepSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )
