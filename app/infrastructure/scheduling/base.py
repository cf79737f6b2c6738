"""Scheduler contract.

All time-dependent behaviour of the resilience core (backoff sleeps, periodic
sweeps, the breaker clock) goes through a ``Scheduler`` so tests can swap in
a virtual clock.
"""

from dataclasses import dataclass, field
from datetime import datetime
import inspect
from typing import Any, Callable, Protocol, runtime_checkable

# A callback returns a coroutine (or None for plain synchronous work)
JobCallback = Callable[[], Any]


@dataclass
class ScheduledJob:
    """Handle for a scheduled callback.

    Attributes:
        name: Job name used in logs
        cancelled: True once cancel() was called
    """

    name: str
    _cancel: Callable[[], None] = field(repr=False)
    cancelled: bool = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self._cancel()
        self.cancelled = True


@runtime_checkable
class Scheduler(Protocol):
    """Clock, sleep and timer facilities."""

    def now(self) -> datetime:
        """Current time as a timezone-aware UTC datetime."""
        ...

    async def sleep(self, seconds: float) -> None: ...

    def schedule_once(
        self, delay: float, callback: JobCallback, name: str = "once"
    ) -> ScheduledJob: ...

    def schedule_repeating(
        self, interval: float, callback: JobCallback, name: str
    ) -> ScheduledJob: ...

    def start(self) -> None: ...

    async def stop(self) -> None: ...


async def run_callback(callback: Callable[[], Any]) -> Any:
    """Call ``callback`` and await its result if it is awaitable."""
    result = callback()
    if inspect.isawaitable(result):
        return await result
    return result
