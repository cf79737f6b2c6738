"""Redis-backed durable key-value store.

Implements the ``KeyValueStore`` contract on top of ``redis.asyncio``.
Connection and timeout failures are re-raised as ``OperationError`` tagged
``NETWORK`` so the retry executor treats store unavailability as transient.
"""

from typing import List, Optional

from redis import RedisError  # type: ignore
from redis.asyncio import Redis  # type: ignore

from infrastructure.logging import get_module_logger
from infrastructure.operations.classifiers import classify_exception
from infrastructure.operations.errors import OperationError

logger = get_module_logger()

SCAN_BATCH_SIZE = 100


class RedisKeyValueStore:
    """Durable key-value store using Redis ``SET EX``/``GET``/``DEL``/``SCAN``."""

    def __init__(self, client: Redis):
        self._client = client

    def _wrap(self, action: str, key: str, exc: Exception) -> OperationError:
        error = classify_exception(exc)
        if error.retryable:
            logger.warning(
                "redis_connection_error", action=action, key=key, error=str(exc)
            )
        else:
            logger.error("redis_error", action=action, key=key, error=str(exc))
        return error

    async def set(
        self, key: str, value: str, ttl_seconds: Optional[int] = None
    ) -> None:
        try:
            if ttl_seconds:
                await self._client.set(key, value, ex=int(ttl_seconds))
            else:
                await self._client.set(key, value)
        except RedisError as e:
            raise self._wrap("set", key, e) from e

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except RedisError as e:
            raise self._wrap("get", key, e) from e

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._client.delete(key))
        except RedisError as e:
            raise self._wrap("delete", key, e) from e

    async def scan(self, pattern: str) -> List[str]:
        try:
            return [
                key
                async for key in self._client.scan_iter(
                    match=pattern, count=SCAN_BATCH_SIZE
                )
            ]
        except RedisError as e:
            raise self._wrap("scan", pattern, e) from e

    async def ping(self) -> bool:
        """Return True if Redis answers PING. Never raises on connection errors."""
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.warning("redis_health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("redis_connection_closed")
