"""Redis connection settings for the durable retry store."""

from typing import Optional

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class RedisSettings(IntegrationSettings):
    """Redis configuration.

    Environment Variables:
        REDIS_HOST: Redis hostname (default: localhost)
        REDIS_PORT: Redis port (default: 6379)
        REDIS_RECOVERY_DB: Logical database used for recovery state (default: 3)
        REDIS_PASSWORD: Optional password
        REDIS_SOCKET_TIMEOUT: Socket and connect timeout in seconds (default: 5)
        REDIS_MAX_CONNECTIONS: Connection pool size (default: 10)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        host = settings.redis.REDIS_HOST
        ```
    """

    REDIS_HOST: str = Field(default="localhost", alias="REDIS_HOST")
    REDIS_PORT: int = Field(default=6379, alias="REDIS_PORT")
    REDIS_RECOVERY_DB: int = Field(default=3, alias="REDIS_RECOVERY_DB")
    REDIS_PASSWORD: Optional[str] = Field(default=None, alias="REDIS_PASSWORD")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, alias="REDIS_SOCKET_TIMEOUT")
    REDIS_MAX_CONNECTIONS: int = Field(default=10, alias="REDIS_MAX_CONNECTIONS")
