"""Unit tests for ResilienceService."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from infrastructure.operations.errors import OperationError
from infrastructure.operations.status import OperationStatus
from infrastructure.persistence import InMemoryKeyValueStore
from infrastructure.resilience import OperationPolicy, ResilienceService
from infrastructure.scheduling import Sweep, VirtualScheduler


class RecordingSweep(Sweep):
    name = "recording"

    def __init__(self):
        super().__init__()
        self.calls = 0

    async def _sweep(self):
        self.calls += 1
        return {"calls": self.calls}


@pytest.mark.unit
class TestExecuteWithRetry:
    """Tests for ResilienceService.execute_with_retry()."""

    @pytest.mark.asyncio
    async def test_success(self, resilience_service):
        async def operation():
            return "done"

        result = await resilience_service.execute_with_retry("sync", operation)

        assert result.is_success is True
        assert result.data == "done"

    @pytest.mark.asyncio
    async def test_policy_overrides(self, resilience_service, virtual_scheduler):
        """Keyword overrides change the policy for one call only."""
        calls = []

        async def operation():
            calls.append(1)
            raise OperationError.network("down")

        await resilience_service.execute_with_retry(
            "sync", operation, max_retries=2, initial_delay_seconds=2.0
        )

        assert len(calls) == 2
        assert virtual_scheduler.sleeps == [2.0]
        assert resilience_service.policy.max_retries == 5

    @pytest.mark.asyncio
    async def test_invalid_override_returns_fallback(self, resilience_service):
        """Bad overrides never raise; a validation fallback is returned."""
        calls = []

        result = await resilience_service.execute_with_retry(
            "sync", lambda: calls.append(1), max_retries=0
        )

        assert calls == []
        assert result.is_fallback is True
        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [{"max_retries": None}, {"timeout_seconds": "fast"}, {"backoff_multiplier": None}],
    )
    async def test_wrongly_typed_override_returns_fallback(
        self, resilience_service, overrides
    ):
        """Overrides of the wrong type never raise either."""
        calls = []

        result = await resilience_service.execute_with_retry(
            "sync", lambda: calls.append(1), **overrides
        )

        assert calls == []
        assert result.is_fallback is True
        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_register_fallback(self, resilience_service):
        resilience_service.register_fallback("sync", lambda context, error: "substitute")

        async def operation():
            raise ValueError("bad")

        result = await resilience_service.execute_with_retry("sync", operation)

        assert result.data == "substitute"
        assert result.is_fallback is True

    @pytest.mark.asyncio
    async def test_instances_are_independent(self):
        """Two services never share breakers or handlers."""
        first = ResilienceService(
            OperationPolicy(circuit_breaker_threshold=1, jitter_enabled=False),
            InMemoryKeyValueStore(),
            VirtualScheduler(),
        )
        second = ResilienceService(
            OperationPolicy(), InMemoryKeyValueStore(), VirtualScheduler()
        )

        async def failing():
            raise ValueError("bad")

        await first.execute_with_retry("shared", failing)

        assert first.breakers.get_open_breakers() == ["shared"]
        assert second.breakers.get_open_breakers() == []


@pytest.mark.unit
class TestConcurrentCalls:
    """Concurrent calls sharing one operation name."""

    @pytest.mark.asyncio
    async def test_half_open_admits_one_caller(self, resilience_service, virtual_scheduler):
        """Once the breaker cools down only one of many callers gets through."""
        for _ in range(5):
            resilience_service.breakers.record_failure("sync", "down")
        await virtual_scheduler.sleep(301)
        calls = []

        async def operation():
            calls.append(1)
            for _ in range(3):
                await asyncio.sleep(0)
            return "recovered"

        results = await asyncio.gather(
            *(resilience_service.execute_with_retry("sync", operation) for _ in range(5))
        )

        assert calls == [1]
        successes = [r for r in results if r.is_success and not r.is_fallback]
        rejected = [r for r in results if r.status == OperationStatus.CIRCUIT_OPEN]
        assert len(successes) == 1
        assert successes[0].data == "recovered"
        assert len(rejected) == 4
        assert all(r.is_fallback for r in rejected)

    @pytest.mark.asyncio
    async def test_failures_counted_once_per_attempt(self, resilience_service):
        """Concurrent failing calls open the breaker after the threshold."""

        async def operation():
            await asyncio.sleep(0)
            raise OperationError.validation("rejected")

        await asyncio.gather(
            *(resilience_service.execute_with_retry("sync", operation) for _ in range(5))
        )

        stats = resilience_service.breakers.get_stats("sync")
        assert stats["consecutive_failures"] == 5
        assert stats["state"] == "open"


@pytest.mark.unit
class TestRetryReplay:
    """Retry records replayed by the retry sweep."""

    @pytest.mark.asyncio
    async def test_unhandled_records_are_queued(self, resilience_service, virtual_scheduler):
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) == 1:
                raise OperationError.network("down")
            return "ok"

        await resilience_service.execute_with_retry(
            "webhook", operation, context={"id": 3}
        )
        await resilience_service.start()
        await virtual_scheduler.advance(300)

        event = resilience_service.retry_events.get_nowait()
        assert event.operation_name == "webhook"
        assert event.context == {"id": 3}
        assert event.attempt == 1
        assert await resilience_service.retry_store.list_pending() == []

    @pytest.mark.asyncio
    async def test_register_retry_operation_replays(
        self, resilience_service, virtual_scheduler
    ):
        """Replayed operations are rebuilt from the persisted context."""
        replayed = []

        async def failing():
            raise OperationError.network("down")

        await resilience_service.execute_with_retry(
            "sync", failing, context={"job_id": 5}, max_retries=2
        )

        def factory(context):
            async def operation():
                replayed.append(context["job_id"])
                return "ok"

            return operation

        resilience_service.register_retry_operation("sync", factory, max_retries=1)
        await resilience_service.start()
        await virtual_scheduler.advance(300)

        assert replayed == [5]
        assert await resilience_service.retry_store.list_pending() == []

    @pytest.mark.asyncio
    async def test_register_retry_handler(self, resilience_service):
        events = []
        resilience_service.register_retry_handler("sync", events.append)

        assert resilience_service.retry_channel.has_handler("sync") is True


@pytest.mark.unit
class TestLifecycle:
    """start/stop, sweeps, health and stats."""

    @pytest.mark.asyncio
    async def test_retry_sweep_registered_by_default(self, resilience_service):
        assert [s.name for s in resilience_service.sweeps] == ["retry_sweep"]

    @pytest.mark.asyncio
    async def test_sweeps_run_after_start(self, resilience_service, virtual_scheduler):
        sweep = RecordingSweep()
        resilience_service.add_sweep(sweep, 60)

        await virtual_scheduler.advance(120)
        assert sweep.calls == 0

        await resilience_service.start()
        await virtual_scheduler.advance(120)

        assert sweep.calls == 2
        assert resilience_service.started is True

    @pytest.mark.asyncio
    async def test_sweep_added_after_start(self, resilience_service, virtual_scheduler):
        await resilience_service.start()
        sweep = RecordingSweep()

        resilience_service.add_sweep(sweep, 30)
        await virtual_scheduler.advance(30)

        assert sweep.calls == 1

    @pytest.mark.asyncio
    async def test_sweeps_disabled(self, kv_store, virtual_scheduler):
        service = ResilienceService(
            OperationPolicy(), kv_store, virtual_scheduler, sweeps_enabled=False
        )
        sweep = RecordingSweep()
        service.add_sweep(sweep, 10)

        await service.start()
        await virtual_scheduler.advance(100)

        assert sweep.calls == 0
        assert virtual_scheduler.pending_jobs == []

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, virtual_scheduler):
        kv = AsyncMock()
        service = ResilienceService(OperationPolicy(), kv, virtual_scheduler)
        await service.start()

        await service.stop()
        await service.stop()

        kv.close.assert_awaited_once()
        assert service.started is False
        assert virtual_scheduler.pending_jobs == []

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, virtual_scheduler):
        """A restarted service removes its sweeps again on the next stop."""
        kv = AsyncMock()
        service = ResilienceService(OperationPolicy(), kv, virtual_scheduler)
        await service.start()
        await service.stop()

        await service.start()
        assert service.started is True
        assert virtual_scheduler.pending_jobs == ["retry_sweep"]

        await service.stop()

        assert service.started is False
        assert virtual_scheduler.pending_jobs == []
        assert kv.close.await_count == 2

    @pytest.mark.asyncio
    async def test_health_check(self, resilience_service):
        health = await resilience_service.health_check()

        assert health == {
            "healthy": True,
            "store": "ok",
            "open_circuit_breakers": [],
            "started": False,
        }

    @pytest.mark.asyncio
    async def test_health_check_store_unavailable(self, virtual_scheduler):
        kv = AsyncMock()
        kv.ping.side_effect = OperationError.network("down")
        service = ResilienceService(OperationPolicy(), kv, virtual_scheduler)

        health = await service.health_check()

        assert health["healthy"] is False
        assert health["store"] == "unavailable"

    @pytest.mark.asyncio
    async def test_get_stats(self, resilience_service):
        async def failing():
            raise OperationError.network("down")

        resilience_service.register_fallback("a", lambda c, e: None)
        await resilience_service.execute_with_retry("a", failing, max_retries=2)

        stats = await resilience_service.get_stats()

        assert stats["circuit_breakers"]["a"]["consecutive_failures"] == 2
        assert stats["open_circuit_breakers"] == []
        assert stats["retry_records"] == {"pending": 1, "by_operation": {"a": 1}}
        assert stats["retry_queue_pending"] == 0
        assert stats["fallback_handlers"] == ["a"]
        assert stats["sweeps"]["retry_sweep"]["interval_seconds"] == 300.0
        assert stats["sweeps"]["retry_sweep"]["run_count"] == 0
