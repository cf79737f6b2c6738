"""Timeout guard racing an attempt against a deadline."""

import asyncio
from typing import Any, Awaitable, Callable

from infrastructure.operations.errors import OperationTimeoutError


async def run_with_timeout(
    operation: Callable[[], Awaitable[Any]],
    timeout_seconds: float,
    operation_name: str,
) -> Any:
    """Await ``operation()`` for at most ``timeout_seconds``.

    The attempt is cancelled when the deadline passes. A worker thread
    started through ``asyncio.to_thread`` can not be interrupted and runs to
    completion in the background; its result is discarded.

    Raises:
        OperationTimeoutError: The deadline passed first.
    """
    try:
        return await asyncio.wait_for(operation(), timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        raise OperationTimeoutError(operation_name, timeout_seconds) from e
