"""Sweep replaying due retry records onto the retry channel."""

from datetime import datetime
from typing import Any, Callable, Dict

from infrastructure.logging import get_module_logger
from infrastructure.resilience.retry.channel import RetryChannel
from infrastructure.resilience.retry.models import RetryEvent
from infrastructure.resilience.retry.store import DurableRetryStore
from infrastructure.scheduling.sweep import Sweep

logger = get_module_logger()


class RetrySweep(Sweep):
    """Publish every due retry record and delete the ones delivered.

    The sweep does not know how to re-run operations. Undelivered records
    stay in the store for the next pass until their TTL expires.
    """

    name = "retry_sweep"

    def __init__(
        self,
        store: DurableRetryStore,
        channel: RetryChannel,
        clock: Callable[[], datetime],
    ) -> None:
        super().__init__()
        self._store = store
        self._channel = channel
        self._clock = clock

    async def _sweep(self) -> Dict[str, Any]:
        now = self._clock()
        pending = await self._store.list_pending()
        due = [record for record in pending if record.next_retry_at <= now]

        stats = {"scanned": len(pending), "due": len(due), "dispatched": 0, "undelivered": 0}
        if not due:
            logger.debug("retry_sweep_no_due_records", pending=len(pending))
            return stats

        for record in due:
            event = RetryEvent(
                operation_name=record.operation_name,
                context=record.caller_context,
                attempt=record.attempt_number,
                record_id=record.id,
                last_error=record.last_error_message,
            )
            if await self._channel.publish(event):
                await self._store.delete(record.id)
                stats["dispatched"] += 1
                logger.info(
                    "retry_record_dispatched",
                    record_id=record.id,
                    operation_name=record.operation_name,
                    attempt=record.attempt_number,
                )
            else:
                stats["undelivered"] += 1

        return stats
