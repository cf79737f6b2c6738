"""Infrastructure configuration module - public API.

This module provides centralized configuration management for the recovery
service using Pydantic BaseSettings with domain-based organization.

Exports:
    Settings: Main settings class (for testing/overrides)
    RecoverySettings: Default operation policy settings class
    SweepSettings: Recovery sweep settings class
    RedisSettings: Redis connection settings class

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    # Access settings
    backend = settings.recovery.backend
    redis_host = settings.redis.REDIS_HOST

    # Check environment
    if settings.is_production:
        # Production-specific logic...
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.infrastructure import RecoverySettings, SweepSettings
from infrastructure.configuration.integrations import RedisSettings

__all__ = ["Settings", "RecoverySettings", "SweepSettings", "RedisSettings"]
