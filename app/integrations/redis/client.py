"""Redis client factory for the durable recovery store.

Connects to Redis (or an ElastiCache Redis/Valkey cluster) as a database
client. The recovery store uses its own logical database so retry and
fallback keys never collide with application caches.

Usage:
    from integrations.redis import create_redis_client

    client = create_redis_client(settings.redis)
"""

from redis.asyncio import ConnectionPool, Redis  # type: ignore

from infrastructure.configuration.integrations.redis import RedisSettings
from infrastructure.logging import get_module_logger

logger = get_module_logger()


def create_redis_client(redis_settings: RedisSettings) -> Redis:
    """Create an asyncio Redis client backed by a connection pool.

    No connection is opened here; the pool connects lazily on first command.

    Args:
        redis_settings: Redis connection settings.

    Returns:
        Redis: asyncio client with decoded (str) responses.
    """
    pool = ConnectionPool(
        host=redis_settings.REDIS_HOST,
        port=redis_settings.REDIS_PORT,
        db=redis_settings.REDIS_RECOVERY_DB,
        password=redis_settings.REDIS_PASSWORD,
        decode_responses=True,
        max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
        socket_timeout=redis_settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=redis_settings.REDIS_SOCKET_TIMEOUT,
        health_check_interval=30,
    )
    logger.info(
        "redis_connection_pool_created",
        host=redis_settings.REDIS_HOST,
        port=redis_settings.REDIS_PORT,
        db=redis_settings.REDIS_RECOVERY_DB,
    )
    return Redis(connection_pool=pool)
