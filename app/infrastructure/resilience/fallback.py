"""Fallback resolution for exhausted or circuit-open operations.

Resolution order:
1. A handler registered for the operation name, called with
   ``(context, last_error)``. Its return value is used as-is; if it raises,
   resolution falls through.
2. The last-known-good value cached for ``(operation_name, hash(context))``,
   returned flagged as stale.
3. A structured failure descriptor.

``resolve()`` never raises.
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from infrastructure.logging import get_module_logger
from infrastructure.operations.classifiers import status_for_kind
from infrastructure.operations.errors import OperationError
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus
from infrastructure.persistence.kv import KeyValueStore
from infrastructure.resilience.invoke import invoke

logger = get_module_logger()

FallbackHandler = Callable[[Dict[str, Any], Optional[OperationError]], Any]

KEY_PREFIX = "fallback"
CIRCUIT_OPEN_REASON = "circuit breaker open"


def context_hash(context: Optional[Dict[str, Any]]) -> str:
    """Stable hash of a caller context (key order does not matter)."""
    encoded = json.dumps(context or {}, sort_keys=True, default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class FallbackCache:
    """Last-known-good values in the durable key-value store.

    Values are wrapped as ``{"value": ..., "cached_at": ...}`` so a cached
    ``None`` is distinguishable from a miss.
    """

    def __init__(self, kv: KeyValueStore, ttl_seconds: int = 3600) -> None:
        self._kv = kv
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def build_key(operation_name: str, context: Optional[Dict[str, Any]]) -> str:
        return f"{KEY_PREFIX}:{operation_name}:{context_hash(context)}"

    async def get(
        self, operation_name: str, context: Optional[Dict[str, Any]]
    ) -> Tuple[bool, Any]:
        """Return ``(hit, value)``."""
        raw = await self._kv.get(self.build_key(operation_name, context))
        if raw is None:
            return False, None
        try:
            return True, json.loads(raw)["value"]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(
                "fallback_cache_entry_corrupt",
                operation_name=operation_name,
                error=str(e),
            )
            return False, None

    async def put(
        self, operation_name: str, context: Optional[Dict[str, Any]], value: Any
    ) -> bool:
        """Store ``value``. Returns False if it is not JSON serialisable."""
        try:
            payload = json.dumps(
                {"value": value, "cached_at": datetime.now(timezone.utc).isoformat()}
            )
        except (TypeError, ValueError):
            logger.debug("fallback_value_not_serializable", operation_name=operation_name)
            return False
        await self._kv.set(
            self.build_key(operation_name, context), payload, self.ttl_seconds
        )
        return True


class FallbackDispatcher:
    """Registered fallback handlers plus the cache and default tiers.

    Handlers are process-wide for the owning resilience service and are
    expected to be registered once at startup.
    """

    def __init__(
        self,
        cache: FallbackCache,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._cache = cache
        self._clock = clock
        self._handlers: Dict[str, FallbackHandler] = {}

    def register(self, operation_name: str, handler: FallbackHandler) -> None:
        """Register the handler for ``operation_name``, replacing any previous one."""
        if operation_name in self._handlers:
            logger.warning("fallback_handler_overwritten", operation_name=operation_name)
        else:
            logger.info("fallback_handler_registered", operation_name=operation_name)
        self._handlers[operation_name] = handler

    def has_handler(self, operation_name: str) -> bool:
        return operation_name in self._handlers

    @property
    def registered_operations(self) -> list:
        return sorted(self._handlers)

    async def remember(
        self, operation_name: str, context: Optional[Dict[str, Any]], value: Any
    ) -> None:
        """Cache a successful value as the last-known-good fallback."""
        data = value.data if isinstance(value, OperationResult) else value
        try:
            await self._cache.put(operation_name, context, data)
        except Exception as e:
            logger.warning(
                "fallback_cache_write_failed",
                operation_name=operation_name,
                error=str(e),
            )

    async def resolve(
        self,
        operation_name: str,
        context: Optional[Dict[str, Any]],
        last_error: Optional[OperationError],
    ) -> OperationResult:
        """Resolve a substitute result. ``last_error`` is None when the
        breaker was open and no attempt was made."""
        context = context or {}
        logger.info(
            "fallback_resolving",
            operation_name=operation_name,
            reason=last_error.message if last_error else CIRCUIT_OPEN_REASON,
        )

        handler = self._handlers.get(operation_name)
        if handler is not None:
            try:
                value = await invoke(handler, context, last_error)
            except Exception as e:
                logger.error(
                    "fallback_handler_failed",
                    operation_name=operation_name,
                    error=str(e),
                )
            else:
                logger.info("fallback_handler_used", operation_name=operation_name)
                if isinstance(value, OperationResult):
                    return value
                return OperationResult.fallback(
                    OperationStatus.SUCCESS,
                    "Resolved by fallback handler",
                    data=value,
                )

        try:
            hit, cached = await self._cache.get(operation_name, context)
        except Exception as e:
            logger.warning(
                "fallback_cache_lookup_failed",
                operation_name=operation_name,
                error=str(e),
            )
            hit, cached = False, None
        if hit:
            logger.info("fallback_cache_hit", operation_name=operation_name)
            return OperationResult.fallback(
                OperationStatus.SUCCESS,
                "Returning cached result",
                data=cached,
                is_stale=True,
            )

        return self._default_result(operation_name, last_error)

    def _default_result(
        self, operation_name: str, last_error: Optional[OperationError]
    ) -> OperationResult:
        reason = last_error.message if last_error else CIRCUIT_OPEN_REASON
        if last_error is None:
            status = OperationStatus.CIRCUIT_OPEN
            error_code = "CIRCUIT_OPEN"
        else:
            status = status_for_kind(last_error.kind)
            error_code = last_error.error_code
        logger.warning(
            "fallback_default_used",
            operation_name=operation_name,
            reason=reason,
        )
        return OperationResult.fallback(
            status,
            reason,
            data={
                "success": False,
                "fallback": True,
                "operation_name": operation_name,
                "reason": reason,
                "timestamp": self._clock().isoformat(),
            },
            error_code=error_code,
        )
