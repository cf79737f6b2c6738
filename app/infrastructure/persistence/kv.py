"""Durable key-value store contract and in-memory implementation.

The resilience core persists retry records and last-known-good fallback
values through this interface. Values are strings (JSON encoded by callers);
every key may carry a time-to-live so abandoned records self-expire.

Usage:
    from infrastructure.persistence import InMemoryKeyValueStore

    store = InMemoryKeyValueStore()
    await store.set("retry:sync:1", '{"attempt": 1}', ttl_seconds=3600)
    keys = await store.scan("retry:*")
"""

import fnmatch
import threading
import time
from typing import Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from infrastructure.logging import get_module_logger

logger = get_module_logger()


@runtime_checkable
class KeyValueStore(Protocol):
    """Async key-value store with per-key TTL and glob enumeration."""

    async def set(
        self, key: str, value: str, ttl_seconds: Optional[int] = None
    ) -> None: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def delete(self, key: str) -> bool: ...

    async def scan(self, pattern: str) -> List[str]: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class InMemoryKeyValueStore:
    """Process-local key-value store.

    Suitable for development, single-instance deployments and tests. Entries
    do not survive a restart. Expired keys are dropped lazily on access.

    Thread-safe: every read-modify-write holds a lock, so records written from
    worker threads (``asyncio.to_thread``) and the event loop do not race.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()
        logger.info("in_memory_key_value_store_initialized")

    def _is_expired(self, expires_at: Optional[float], now: float) -> bool:
        return expires_at is not None and expires_at <= now

    async def set(
        self, key: str, value: str, ttl_seconds: Optional[int] = None
    ) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._data[key] = (value, expires_at)

    async def get(self, key: str) -> Optional[str]:
        now = self._clock()
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._is_expired(expires_at, now):
                del self._data[key]
                return None
            return value

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    async def scan(self, pattern: str) -> List[str]:
        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, (_, expires_at) in self._data.items()
                if self._is_expired(expires_at, now)
            ]
            for key in expired:
                del self._data[key]
            return [key for key in self._data if fnmatch.fnmatchcase(key, pattern)]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        # Nothing to release
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
