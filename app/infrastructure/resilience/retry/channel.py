"""Retry replay channel.

Due retry records are pushed here by the retry sweep. An operation can have
one registered handler that is invoked directly; events for operations
without a handler are queued for consumers awaiting ``get()``.

Usage:
    channel.register("webhook_delivery", redeliver)

    # or consume generically
    event = await channel.get()
"""

import asyncio
from typing import Any, Callable, Dict, List

from infrastructure.logging import get_module_logger
from infrastructure.resilience.invoke import invoke
from infrastructure.resilience.retry.models import RetryEvent

logger = get_module_logger()

RetryHandler = Callable[[RetryEvent], Any]


class RetryChannel:
    """Typed delivery of retry events, per operation name.

    Args:
        maxsize: Capacity of the queue for events without a handler
    """

    def __init__(self, maxsize: int = 1000) -> None:
        self._handlers: Dict[str, RetryHandler] = {}
        self._queue: "asyncio.Queue[RetryEvent]" = asyncio.Queue(maxsize=maxsize)

    def register(self, operation_name: str, handler: RetryHandler) -> None:
        """Install the handler for ``operation_name``, replacing any previous one."""
        if operation_name in self._handlers:
            logger.warning("retry_handler_overwritten", operation_name=operation_name)
        else:
            logger.info("retry_handler_registered", operation_name=operation_name)
        self._handlers[operation_name] = handler

    def unregister(self, operation_name: str) -> bool:
        return self._handlers.pop(operation_name, None) is not None

    def has_handler(self, operation_name: str) -> bool:
        return operation_name in self._handlers

    @property
    def registered_operations(self) -> List[str]:
        return sorted(self._handlers)

    async def publish(self, event: RetryEvent) -> bool:
        """Deliver an event.

        Returns:
            True if a handler completed or the event was queued; False if
            the handler raised or the queue is full.
        """
        handler = self._handlers.get(event.operation_name)
        if handler is not None:
            try:
                await invoke(handler, event)
            except Exception as e:
                logger.error(
                    "retry_handler_failed",
                    operation_name=event.operation_name,
                    record_id=event.record_id,
                    error=str(e),
                )
                return False
            return True

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "retry_channel_full",
                operation_name=event.operation_name,
                record_id=event.record_id,
                maxsize=self._queue.maxsize,
            )
            return False
        return True

    async def get(self) -> RetryEvent:
        """Wait for the next queued event."""
        return await self._queue.get()

    def get_nowait(self) -> RetryEvent:
        return self._queue.get_nowait()

    @property
    def pending(self) -> int:
        return self._queue.qsize()
