"""Production scheduler on top of asyncio and the ``schedule`` library.

Repeating jobs live on a private ``schedule.Scheduler``; an asyncio task
calls ``run_pending()`` once per tick and each due job is spawned as its own
task, so a slow sweep never delays the others. As with ``schedule`` itself,
missed runs are not replayed.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional, Set

import schedule

from infrastructure.logging import get_module_logger
from infrastructure.scheduling.base import JobCallback, ScheduledJob, run_callback

logger = get_module_logger()


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop.

    Args:
        tick_seconds: How often pending repeating jobs are checked
    """

    def __init__(self, tick_seconds: float = 1.0):
        self._tick_seconds = tick_seconds
        self._schedule = schedule.Scheduler()
        self._driver: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._timers: Set[asyncio.TimerHandle] = set()

    @property
    def running(self) -> bool:
        return self._driver is not None and not self._driver.done()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def schedule_once(
        self, delay: float, callback: JobCallback, name: str = "once"
    ) -> ScheduledJob:
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def fire() -> None:
            self._timers.discard(handle)
            self._spawn(callback, name)

        handle = loop.call_later(max(0.0, delay), fire)
        self._timers.add(handle)

        def cancel() -> None:
            handle.cancel()
            self._timers.discard(handle)

        return ScheduledJob(name=name, _cancel=cancel)

    def schedule_repeating(
        self, interval: float, callback: JobCallback, name: str
    ) -> ScheduledJob:
        seconds = max(1, int(round(interval)))
        job = (
            self._schedule.every(seconds)
            .seconds.do(self._spawn, callback, name)
            .tag(name)
        )
        logger.info("repeating_job_scheduled", job=name, interval_seconds=seconds)
        return ScheduledJob(name=name, _cancel=lambda: self._schedule.cancel_job(job))

    def start(self) -> None:
        if self.running:
            return
        self._driver = asyncio.get_running_loop().create_task(
            self._run(), name="scheduler-driver"
        )
        logger.info("scheduler_started", tick_seconds=self._tick_seconds)

    async def stop(self) -> None:
        self._schedule.clear()
        for handle in list(self._timers):
            handle.cancel()
        self._timers.clear()

        pending = list(self._tasks)
        if self._driver is not None:
            pending.append(self._driver)
            self._driver = None
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        logger.info("scheduler_stopped", cancelled_tasks=len(pending))

    async def _run(self) -> None:
        while True:
            self._schedule.run_pending()
            await asyncio.sleep(self._tick_seconds)

    def _spawn(self, callback: JobCallback, name: str) -> None:
        task = asyncio.get_running_loop().create_task(
            run_callback(callback), name=f"job-{name}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "scheduled_job_failed",
                job=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )
