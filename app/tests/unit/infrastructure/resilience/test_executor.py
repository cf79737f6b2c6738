"""Unit tests for RetryExecutor."""

import asyncio

import pytest
import requests

from infrastructure.operations.errors import OperationError
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus
from infrastructure.resilience import CircuitState


def _http_error(status_code):
    response = requests.Response()
    response.status_code = status_code
    return requests.HTTPError(f"{status_code} error", response=response)


@pytest.mark.unit
class TestRetryExecutorSuccess:
    """Successful executions."""

    @pytest.mark.asyncio
    async def test_first_attempt_success(self, executor, flaky_operation_factory, virtual_scheduler):
        operation = flaky_operation_factory(value={"id": 1})

        result = await executor.execute("sync", operation)

        assert result.is_success is True
        assert result.is_fallback is False
        assert result.data == {"id": 1}
        assert operation.calls == 1
        assert virtual_scheduler.sleeps == []

    @pytest.mark.asyncio
    async def test_sync_operation(self, executor):
        result = await executor.execute("sync", lambda: 42)

        assert result.data == 42

    @pytest.mark.asyncio
    async def test_operation_result_returned_as_is(self, executor):
        expected = OperationResult.success(data=[1], message="fetched")

        async def operation():
            return expected

        assert await executor.execute("sync", operation) is expected

    @pytest.mark.asyncio
    async def test_retries_until_success_with_backoff(
        self, executor, flaky_operation_factory, network_error, virtual_scheduler, breakers
    ):
        """Transient failures are retried with exponential delays."""
        operation = flaky_operation_factory([network_error(), network_error()])

        result = await executor.execute("sync", operation)

        assert result.is_success is True
        assert operation.calls == 3
        assert virtual_scheduler.sleeps == [1.0, 2.0]
        assert breakers.get("sync").consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_cache_results_feeds_fallback(
        self, executor, policy_factory, network_error, flaky_operation_factory
    ):
        """With cache_results a later failure returns the stale value."""
        policy = policy_factory(cache_results=True, max_retries=1)
        await executor.execute("profile", lambda: {"name": "x"}, policy, {"id": 1})

        failing = flaky_operation_factory([network_error()])
        result = await executor.execute("profile", failing, policy, {"id": 1})

        assert result.is_fallback is True
        assert result.is_stale is True
        assert result.data == {"name": "x"}


@pytest.mark.unit
class TestRetryExecutorFailures:
    """Failure handling and the retry cap."""

    @pytest.mark.asyncio
    async def test_breaker_opens_mid_loop(
        self, executor, policy_factory, flaky_operation_factory, virtual_scheduler, breakers
    ):
        """Threshold 3, five attempts allowed: the third failure opens the
        breaker and no further attempt is made."""
        policy = policy_factory(max_retries=5, circuit_breaker_threshold=3)
        operation = flaky_operation_factory(
            [_http_error(503), _http_error(503), _http_error(503)]
        )

        result = await executor.execute("external_api", operation, policy)

        assert operation.calls == 3
        assert breakers.get("external_api").state == CircuitState.OPEN
        assert virtual_scheduler.sleeps == [1.0, 2.0]
        assert result.is_fallback is True
        assert result.status == OperationStatus.TRANSIENT_ERROR

    @pytest.mark.asyncio
    async def test_permanent_error_stops_immediately(
        self, executor, flaky_operation_factory, virtual_scheduler
    ):
        """A 400 is not retried and goes straight to the fallback."""
        operation = flaky_operation_factory([_http_error(400)])

        result = await executor.execute("external_api", operation)

        assert operation.calls == 1
        assert virtual_scheduler.sleeps == []
        assert result.is_fallback is True
        assert result.status == OperationStatus.PERMANENT_ERROR

    @pytest.mark.asyncio
    async def test_registered_fallback_used_on_exhaustion(
        self, executor, fallback_dispatcher, flaky_operation_factory, network_error, policy_factory
    ):
        """The handler receives context and last error; its value is returned."""
        received = []
        expected = OperationResult.success(data="from handler")

        def handler(context, last_error):
            received.append((context, last_error))
            return expected

        fallback_dispatcher.register("x", handler)
        await fallback_dispatcher.remember("x", {"id": 9}, "cached")
        operation = flaky_operation_factory([network_error("a"), network_error("b")])

        result = await executor.execute(
            "x", operation, policy_factory(max_retries=2), {"id": 9}
        )

        assert result is expected
        assert received[0][0] == {"id": 9}
        assert received[0][1].message == "b"

    @pytest.mark.asyncio
    async def test_attempts_never_exceed_max_retries(
        self, executor, policy_factory, flaky_operation_factory, network_error, virtual_scheduler
    ):
        policy = policy_factory(max_retries=3, circuit_breaker_threshold=10)
        operation = flaky_operation_factory([network_error() for _ in range(10)])

        result = await executor.execute("sync", operation, policy)

        assert operation.calls == 3
        assert len(virtual_scheduler.sleeps) == 2
        assert result.is_fallback is True

    @pytest.mark.asyncio
    async def test_delays_capped(self, executor, policy_factory, flaky_operation_factory, network_error, virtual_scheduler):
        policy = policy_factory(
            max_retries=4, max_delay_seconds=3.0, circuit_breaker_threshold=10
        )
        operation = flaky_operation_factory([network_error() for _ in range(4)])

        await executor.execute("sync", operation, policy)

        assert virtual_scheduler.sleeps == [1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    async def test_jitter_uses_random_source(
        self, breakers, fallback_dispatcher, retry_store, virtual_scheduler, policy_factory, flaky_operation_factory, network_error
    ):
        from infrastructure.resilience import RetryExecutor

        executor = RetryExecutor(
            breakers,
            fallback_dispatcher,
            retry_store,
            virtual_scheduler,
            default_policy=policy_factory(jitter_enabled=True, max_retries=3),
            random_source=lambda: 0.25,
        )
        operation = flaky_operation_factory([network_error(), network_error()])

        await executor.execute("sync", operation)

        assert virtual_scheduler.sleeps == [0.25, 0.5]

    @pytest.mark.asyncio
    async def test_non_success_result_counts_as_failure(
        self, executor, policy_factory, breakers
    ):
        """Returned error results are classified like raised errors."""
        calls = []

        async def operation():
            calls.append(1)
            return OperationResult.transient_error("busy", "RATE_LIMITED", 5)

        result = await executor.execute("api", operation, policy_factory(max_retries=2))

        assert len(calls) == 2
        assert breakers.get("api").consecutive_failures == 2
        assert result.is_fallback is True
        assert result.error_code == "RATE_LIMITED"

    @pytest.mark.asyncio
    async def test_unknown_errors_not_retried(self, executor, flaky_operation_factory):
        operation = flaky_operation_factory([RuntimeError("weird")])

        result = await executor.execute("sync", operation)

        assert operation.calls == 1
        assert result.is_fallback is True

    @pytest.mark.asyncio
    async def test_open_breaker_skips_attempt(self, executor, breakers, flaky_operation_factory):
        """No attempt is made while the breaker is open."""
        for _ in range(5):
            breakers.record_failure("sync", "down")
        operation = flaky_operation_factory()

        result = await executor.execute("sync", operation)

        assert operation.calls == 0
        assert result.status == OperationStatus.CIRCUIT_OPEN
        assert result.error_code == "CIRCUIT_OPEN"

    @pytest.mark.asyncio
    async def test_half_open_probe(self, executor, breakers, virtual_scheduler, flaky_operation_factory):
        """After the open duration one probe runs and success closes the breaker."""
        for _ in range(5):
            breakers.record_failure("sync", "down")
        await virtual_scheduler.sleep(301)
        operation = flaky_operation_factory()

        result = await executor.execute("sync", operation)

        assert result.is_success is True
        assert operation.calls == 1
        assert breakers.get("sync").state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_timeout_counts_as_network_failure(self, executor, policy_factory, breakers):
        async def slow():
            await asyncio.sleep(5)

        result = await executor.execute(
            "slow", slow, policy_factory(max_retries=2, timeout_seconds=0.01)
        )

        assert result.is_fallback is True
        assert result.error_code == "TIMEOUT"
        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert breakers.get("slow").consecutive_failures == 2

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, executor):
        """Cancelling the caller is not converted into a fallback."""
        started = asyncio.Event()

        async def operation():
            started.set()
            await asyncio.sleep(10)

        task = asyncio.create_task(executor.execute("sync", operation))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


@pytest.mark.unit
class TestRetryRecords:
    """Retry bookkeeping written by the executor."""

    @pytest.mark.asyncio
    async def test_record_written_per_retry(
        self, executor, retry_store, flaky_operation_factory, network_error, virtual_scheduler
    ):
        operation = flaky_operation_factory([network_error("first"), network_error("second")])

        await executor.execute("sync", operation, context={"job_id": 7})

        records = await retry_store.list_pending()
        assert [r.attempt_number for r in records] == [1, 2]
        assert records[0].caller_context == {"job_id": 7}
        assert records[0].last_error_message == "first"
        assert records[0].operation_name == "sync"

    @pytest.mark.asyncio
    async def test_no_record_for_permanent_failure(self, executor, retry_store, flaky_operation_factory):
        await executor.execute("sync", flaky_operation_factory([ValueError("bad")]))

        assert await retry_store.list_pending() == []

    @pytest.mark.asyncio
    async def test_store_failure_does_not_break_execution(
        self, executor, retry_store, monkeypatch, flaky_operation_factory, network_error
    ):
        async def broken_save(record, ttl_seconds=None):
            raise OperationError.network("store down", "STORE_CONNECTION_ERROR")

        monkeypatch.setattr(retry_store, "save", broken_save)
        operation = flaky_operation_factory([network_error()])

        result = await executor.execute("sync", operation)

        assert result.is_success is True
        assert operation.calls == 2
