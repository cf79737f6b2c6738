"""Base class for periodic recovery sweeps."""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from infrastructure.logging import get_module_logger

logger = get_module_logger()


class Sweep(ABC):
    """A periodic job that must never overlap with itself.

    ``run()`` is the scheduler callback. If the previous run of the same sweep
    is still in progress the new run is skipped. Failures are logged and
    reported in the returned stats, never raised, so one bad run does not kill
    the schedule.

    Subclasses set ``name`` and implement ``_sweep()``.
    """

    name: str = "sweep"

    def __init__(self) -> None:
        self._running = False
        self.run_count = 0
        self.last_stats: Optional[Dict[str, Any]] = None

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> Dict[str, Any]:
        if self._running:
            logger.warning("sweep_already_running", sweep=self.name)
            return {"skipped": True}

        self._running = True
        started = time.monotonic()
        try:
            stats = await self._sweep()
            logger.info(
                "sweep_completed",
                sweep=self.name,
                duration_seconds=round(time.monotonic() - started, 3),
                **stats,
            )
        except Exception as e:
            logger.exception("sweep_failed", sweep=self.name, error=str(e))
            stats = {"error": str(e)}
        finally:
            self._running = False
            self.run_count += 1

        self.last_stats = stats
        return stats

    @abstractmethod
    async def _sweep(self) -> Dict[str, Any]:
        """Perform one pass and return processing statistics."""
        ...
