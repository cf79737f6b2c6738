"""Deterministic virtual-clock scheduler for tests.

``sleep()`` returns immediately after advancing virtual time and records the
requested delay. Timers only fire from ``advance()``.

Example:
    scheduler = VirtualScheduler()
    scheduler.schedule_repeating(300, sweep.run, name="retry_sweep")
    scheduler.start()
    await scheduler.advance(600)  # sweep ran twice
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from infrastructure.scheduling.base import JobCallback, ScheduledJob, run_callback

DEFAULT_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


@dataclass
class _Timer:
    name: str
    due_at: datetime
    callback: JobCallback
    interval: Optional[float] = None
    cancelled: bool = False
    runs: int = field(default=0)


class VirtualScheduler:
    """Scheduler whose clock only moves when told to.

    Attributes:
        sleeps: Every delay passed to sleep(), in call order
        started: True between start() and stop()
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or DEFAULT_START
        self._timers: List[_Timer] = []
        self.sleeps: List[float] = []
        self.started = False

    def now(self) -> datetime:
        return self._now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self._now += timedelta(seconds=seconds)
        # Yield so concurrent tasks interleave as they would on a real loop
        await asyncio.sleep(0)

    def schedule_once(
        self, delay: float, callback: JobCallback, name: str = "once"
    ) -> ScheduledJob:
        timer = _Timer(name, self._now + timedelta(seconds=delay), callback)
        return self._add(timer)

    def schedule_repeating(
        self, interval: float, callback: JobCallback, name: str
    ) -> ScheduledJob:
        timer = _Timer(
            name, self._now + timedelta(seconds=interval), callback, interval=interval
        )
        return self._add(timer)

    def _add(self, timer: _Timer) -> ScheduledJob:
        self._timers.append(timer)

        def cancel() -> None:
            timer.cancelled = True

        return ScheduledJob(name=timer.name, _cancel=cancel)

    def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        for timer in self._timers:
            timer.cancelled = True
        self._timers.clear()
        self.started = False

    @property
    def pending_jobs(self) -> List[str]:
        return [timer.name for timer in self._timers if not timer.cancelled]

    async def advance(self, seconds: float) -> None:
        """Move the clock forward, running every timer that falls due.

        Repeating jobs only fire while the scheduler is started.
        """
        target = self._now + timedelta(seconds=seconds)
        while True:
            due = [
                timer
                for timer in self._timers
                if not timer.cancelled
                and timer.due_at <= target
                and (timer.interval is None or self.started)
            ]
            if not due:
                break
            timer = min(due, key=lambda t: t.due_at)
            self._now = max(self._now, timer.due_at)
            if timer.interval is None:
                timer.cancelled = True
                self._timers.remove(timer)
            else:
                timer.due_at += timedelta(seconds=timer.interval)
            timer.runs += 1
            await run_callback(timer.callback)
        self._now = max(self._now, target)
