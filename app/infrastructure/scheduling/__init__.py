"""Scheduling primitives: clock/sleep/timer abstraction and sweep base class."""

from infrastructure.scheduling.base import ScheduledJob, Scheduler
from infrastructure.scheduling.runtime import AsyncioScheduler
from infrastructure.scheduling.sweep import Sweep
from infrastructure.scheduling.virtual import VirtualScheduler

__all__ = [
    "Scheduler",
    "ScheduledJob",
    "AsyncioScheduler",
    "VirtualScheduler",
    "Sweep",
]
