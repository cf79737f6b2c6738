"""Factory for the durable key-value store backend."""

from typing import Optional, TYPE_CHECKING

from infrastructure.logging import get_module_logger
from infrastructure.persistence.kv import InMemoryKeyValueStore, KeyValueStore

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()

SUPPORTED_BACKENDS = ("memory", "redis")


def create_key_value_store(
    settings: "Settings", backend: Optional[str] = None
) -> KeyValueStore:
    """Create the key-value store selected by ``RECOVERY_BACKEND``.

    Args:
        settings: Application settings.
        backend: Explicit backend name overriding ``settings.recovery.backend``.

    Returns:
        A KeyValueStore implementation.

    Raises:
        ValueError: If the backend name is not supported.
    """
    backend_name = (backend or settings.recovery.backend).lower()

    if backend_name == "memory":
        store: KeyValueStore = InMemoryKeyValueStore()
    elif backend_name == "redis":
        from integrations.redis import RedisKeyValueStore, create_redis_client

        store = RedisKeyValueStore(create_redis_client(settings.redis))
    else:
        raise ValueError(
            f"Unsupported recovery backend '{backend_name}'. "
            f"Expected one of: {', '.join(SUPPORTED_BACKENDS)}"
        )

    logger.info("key_value_store_created", backend=backend_name)
    return store
