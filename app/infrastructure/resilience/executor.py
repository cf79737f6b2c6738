"""Retry executor: the attempt loop of resilient execution.

For one ``execute()`` call:
1. If the operation's circuit breaker is open, resolve a fallback without
   making an attempt.
2. Run up to ``policy.max_retries`` attempts, each under the timeout guard.
   Success closes the breaker and returns immediately. A failure is
   classified once and recorded on the breaker; permanent failures, the
   last attempt, or a breaker that has just opened end the loop. Otherwise a
   retry record is persisted and the call sleeps for the backoff delay.
3. Without success, resolve a fallback with the last error.

``execute()`` never raises ``Exception``; cancellation of the calling task
still propagates.
"""

import random
import time
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from infrastructure.logging import bind_operation_context, get_module_logger
from infrastructure.operations.classifiers import classify_exception, classify_result
from infrastructure.operations.errors import OperationError
from infrastructure.operations.result import OperationResult
from infrastructure.resilience.backoff import calculate_backoff
from infrastructure.resilience.circuit_breaker import CircuitBreakerRegistry
from infrastructure.resilience.fallback import FallbackDispatcher
from infrastructure.resilience.invoke import invoke
from infrastructure.resilience.policy import OperationPolicy
from infrastructure.resilience.retry.models import RetryRecord
from infrastructure.resilience.retry.store import DurableRetryStore
from infrastructure.resilience.timeout import run_with_timeout
from infrastructure.scheduling.base import Scheduler

logger = get_module_logger()

Operation = Callable[[], Any]


class RetryExecutor:
    """Runs operations with retry, backoff, timeouts and circuit breaking.

    Args:
        breakers: Circuit breaker registry shared by all calls
        fallbacks: Fallback dispatcher used on exhaustion or open circuit
        retry_store: Durable store for retry records
        scheduler: Clock and sleep provider
        default_policy: Policy used when a call passes none
        random_source: Source of jitter, in [0, 1)
    """

    def __init__(
        self,
        breakers: CircuitBreakerRegistry,
        fallbacks: FallbackDispatcher,
        retry_store: DurableRetryStore,
        scheduler: Scheduler,
        default_policy: Optional[OperationPolicy] = None,
        random_source: Callable[[], float] = random.random,
    ) -> None:
        self._breakers = breakers
        self._fallbacks = fallbacks
        self._retry_store = retry_store
        self._scheduler = scheduler
        self._default_policy = default_policy or OperationPolicy()
        self._random = random_source

    async def execute(
        self,
        operation_name: str,
        operation: Operation,
        policy: Optional[OperationPolicy] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> OperationResult:
        """Execute ``operation`` resiliently.

        Args:
            operation_name: Breaker key and fallback handler name
            operation: Zero-argument callable, sync or async. It may return a
                value, return an OperationResult (non-success results count
                as failures), or raise.
            policy: Policy for this call
            context: Caller data persisted with retry records and passed to
                fallback handlers

        Returns:
            The operation's result, or a fallback result.
        """
        policy = policy or self._default_policy
        context = context if context is not None else {}

        with bind_operation_context(operation_name=operation_name):
            try:
                return await self._execute(operation_name, operation, policy, context)
            except Exception as e:
                logger.exception("resilient_execution_internal_error", error=str(e))
                return await self._fallbacks.resolve(
                    operation_name, context, classify_exception(e)
                )

    async def _execute(
        self,
        operation_name: str,
        operation: Operation,
        policy: OperationPolicy,
        context: Dict[str, Any],
    ) -> OperationResult:
        breaker = self._breakers.get(
            operation_name,
            failure_threshold=policy.circuit_breaker_threshold,
            open_seconds=policy.circuit_breaker_open_seconds,
        )
        if breaker.is_open():
            logger.warning("circuit_breaker_open_attempt_skipped")
            return await self._fallbacks.resolve(operation_name, context, None)

        started = time.monotonic()
        last_error: Optional[OperationError] = None
        attempts_made = 0

        for attempt in range(1, policy.max_retries + 1):
            if attempt > 1 and breaker.is_open():
                logger.warning("circuit_breaker_open_retries_stopped", attempt=attempt)
                break

            attempts_made = attempt
            try:
                value = await run_with_timeout(
                    lambda: invoke(operation), policy.timeout_seconds, operation_name
                )
                if isinstance(value, OperationResult) and not value.is_success:
                    raise classify_result(value)
            except Exception as e:
                error = classify_exception(e)
                last_error = error
                breaker.record_failure(error.message)
                logger.warning(
                    "operation_attempt_failed",
                    attempt=attempt,
                    max_retries=policy.max_retries,
                    error=error.message,
                    error_kind=error.kind.value,
                    error_code=error.error_code,
                    retryable=error.retryable,
                )

                if not error.retryable:
                    logger.info("operation_failed_permanently", attempt=attempt)
                    break
                if attempt >= policy.max_retries:
                    break
                if breaker.is_open():
                    break

                delay = calculate_backoff(attempt, policy, self._random)
                await self._persist_retry(
                    operation_name, attempt, error, delay, context, policy
                )
                logger.info(
                    "retry_scheduled",
                    delay_seconds=round(delay, 3),
                    attempt=attempt,
                    max_retries=policy.max_retries,
                )
                await self._scheduler.sleep(delay)
                continue

            breaker.record_success()
            if policy.cache_results:
                await self._fallbacks.remember(operation_name, context, value)
            logger.info(
                "operation_succeeded",
                attempt=attempt,
                duration_seconds=round(time.monotonic() - started, 3),
            )
            if isinstance(value, OperationResult):
                return value
            return OperationResult.success(data=value)

        logger.error(
            "all_retry_attempts_failed",
            attempts=attempts_made,
            max_retries=policy.max_retries,
            duration_seconds=round(time.monotonic() - started, 3),
            error=last_error.message if last_error else None,
        )
        return await self._fallbacks.resolve(operation_name, context, last_error)

    async def _persist_retry(
        self,
        operation_name: str,
        attempt: int,
        error: OperationError,
        delay: float,
        context: Dict[str, Any],
        policy: OperationPolicy,
    ) -> None:
        """Write a retry record. Store failures are logged, not raised."""
        try:
            record = RetryRecord(
                operation_name=operation_name,
                attempt_number=attempt,
                last_error_message=error.message,
                next_retry_at=self._scheduler.now() + timedelta(seconds=delay),
                caller_context=dict(context),
            )
            await self._retry_store.save(
                record, ttl_seconds=policy.retry_record_ttl_seconds
            )
        except Exception as e:
            logger.error(
                "retry_record_persist_failed",
                attempt=attempt,
                error=str(e),
            )
