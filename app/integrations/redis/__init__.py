"""Redis integration for the durable recovery store."""

from integrations.redis.client import create_redis_client
from integrations.redis.store import RedisKeyValueStore

__all__ = ["create_redis_client", "RedisKeyValueStore"]
