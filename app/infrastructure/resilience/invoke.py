"""Uniform invocation of sync and async callables."""

import asyncio
import inspect
from typing import Any, Callable


async def invoke(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call ``func`` without blocking the event loop.

    Coroutine functions are awaited directly. Plain callables run in a worker
    thread; if they return an awaitable it is awaited as well.
    """
    if inspect.iscoroutinefunction(func):
        return await func(*args, **kwargs)

    result = await asyncio.to_thread(func, *args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result
