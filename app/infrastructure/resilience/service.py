"""Resilience service: the resilient-execution core as one injectable object.

Composes the circuit breaker registry, fallback dispatcher, durable retry
store, retry channel and executor around a single key-value store and
scheduler, and owns the lifecycle of the periodic recovery sweeps. Several
independently configured instances can coexist (e.g. in tests).
"""

import random
from typing import Any, Callable, Dict, List, Optional, Tuple

from infrastructure.logging import get_module_logger
from infrastructure.operations.errors import OperationError
from infrastructure.operations.result import OperationResult
from infrastructure.persistence.kv import KeyValueStore
from infrastructure.resilience.circuit_breaker import CircuitBreakerRegistry
from infrastructure.resilience.executor import Operation, RetryExecutor
from infrastructure.resilience.fallback import (
    FallbackCache,
    FallbackDispatcher,
    FallbackHandler,
)
from infrastructure.resilience.policy import OperationPolicy
from infrastructure.resilience.retry.channel import RetryChannel, RetryHandler
from infrastructure.resilience.retry.models import RetryEvent
from infrastructure.resilience.retry.store import DurableRetryStore
from infrastructure.resilience.retry.sweep import RetrySweep
from infrastructure.scheduling.base import ScheduledJob, Scheduler
from infrastructure.scheduling.sweep import Sweep

logger = get_module_logger()

OperationFactory = Callable[[Dict[str, Any]], Operation]


class ResilienceService:
    """Class-based resilient-execution core.

    Usage:
        service = create_resilience_service(settings)
        service.register_fallback("external_api_integration_42", use_cached_profile)
        await service.start()

        result = await service.execute_with_retry(
            "external_api_integration_42",
            lambda: client.fetch_profile(performer_id),
            context={"performer_id": performer_id},
            max_retries=3,
        )
        if result.is_success:
            ...

        await service.stop()

    Args:
        policy: Default policy for every call
        kv_store: Durable store for retry records and fallback values
        scheduler: Clock, sleep and timer provider
        random_source: Jitter source, in [0, 1)
        fallback_cache_ttl_seconds: Lifetime of cached last-known-good values
        retry_queue_maxsize: Capacity of the retry channel queue
        retry_sweep_interval_seconds: Interval of the retry replay sweep
        sweeps_enabled: Whether start() schedules the sweeps
    """

    def __init__(
        self,
        policy: OperationPolicy,
        kv_store: KeyValueStore,
        scheduler: Scheduler,
        random_source: Callable[[], float] = random.random,
        fallback_cache_ttl_seconds: int = 3600,
        retry_queue_maxsize: int = 1000,
        retry_sweep_interval_seconds: float = 300.0,
        sweeps_enabled: bool = True,
    ):
        self.policy = policy
        self._kv = kv_store
        self._scheduler = scheduler
        self._sweeps_enabled = sweeps_enabled

        self.breakers = CircuitBreakerRegistry(
            default_threshold=policy.circuit_breaker_threshold,
            default_open_seconds=policy.circuit_breaker_open_seconds,
            clock=scheduler.now,
        )
        self.fallbacks = FallbackDispatcher(
            FallbackCache(kv_store, ttl_seconds=fallback_cache_ttl_seconds),
            clock=scheduler.now,
        )
        self.retry_store = DurableRetryStore(
            kv_store, ttl_seconds=policy.retry_record_ttl_seconds
        )
        self.retry_channel = RetryChannel(maxsize=retry_queue_maxsize)
        self.executor = RetryExecutor(
            breakers=self.breakers,
            fallbacks=self.fallbacks,
            retry_store=self.retry_store,
            scheduler=scheduler,
            default_policy=policy,
            random_source=random_source,
        )

        self._sweeps: List[Tuple[Sweep, float]] = []
        self._jobs: List[ScheduledJob] = []
        self._started = False
        self._closed = False

        self.add_sweep(
            RetrySweep(self.retry_store, self.retry_channel, scheduler.now),
            retry_sweep_interval_seconds,
        )

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def started(self) -> bool:
        return self._started

    @property
    def retry_events(self) -> RetryChannel:
        """Channel carrying due retry events for operations without a handler."""
        return self.retry_channel

    @property
    def sweeps(self) -> List[Sweep]:
        return [sweep for sweep, _ in self._sweeps]

    async def execute_with_retry(
        self,
        operation_name: str,
        operation: Operation,
        policy: Optional[OperationPolicy] = None,
        context: Optional[Dict[str, Any]] = None,
        **policy_overrides: Any,
    ) -> OperationResult:
        """Execute ``operation`` with retry, circuit breaking and fallback.

        Never raises: the result is either the operation's success value or
        a fallback result (``is_fallback=True``).

        Args:
            operation_name: Class of operation (breaker key, fallback name)
            operation: Zero-argument callable, sync or async
            policy: Base policy, defaults to the service policy
            context: Caller data used to resume the call and key the cache
            **policy_overrides: Individual OperationPolicy fields to override
        """
        try:
            effective = (policy or self.policy).with_overrides(**policy_overrides)
        except (TypeError, ValueError) as e:
            logger.error(
                "invalid_policy_overrides",
                operation_name=operation_name,
                error=str(e),
            )
            return await self.fallbacks.resolve(
                operation_name, context, OperationError.validation(str(e))
            )
        return await self.executor.execute(operation_name, operation, effective, context)

    def register_fallback(self, operation_name: str, handler: FallbackHandler) -> None:
        """Register the fallback handler for an operation name (overwrites)."""
        self.fallbacks.register(operation_name, handler)

    def register_retry_handler(self, operation_name: str, handler: RetryHandler) -> None:
        """Receive due retry events for ``operation_name`` directly."""
        self.retry_channel.register(operation_name, handler)

    def register_retry_operation(
        self,
        operation_name: str,
        operation_factory: OperationFactory,
        **policy_overrides: Any,
    ) -> None:
        """Let the retry sweep re-run ``operation_name`` by itself.

        Args:
            operation_name: Operation whose due retry records to replay
            operation_factory: Builds the operation from the persisted caller
                context
            **policy_overrides: Policy overrides for the replayed call
        """

        async def replay(event: RetryEvent) -> None:
            result = await self.execute_with_retry(
                operation_name,
                operation_factory(event.context),
                context=event.context,
                **policy_overrides,
            )
            logger.info(
                "retry_replayed",
                operation_name=operation_name,
                record_id=event.record_id,
                success=result.is_success,
                is_fallback=result.is_fallback,
            )

        self.retry_channel.register(operation_name, replay)

    def add_sweep(self, sweep: Sweep, interval_seconds: float) -> None:
        """Add a periodic sweep; scheduled immediately if already started."""
        self._sweeps.append((sweep, interval_seconds))
        logger.info(
            "sweep_registered", sweep=sweep.name, interval_seconds=interval_seconds
        )
        if self._started and self._sweeps_enabled:
            self._schedule_sweep(sweep, interval_seconds)

    def _schedule_sweep(self, sweep: Sweep, interval_seconds: float) -> None:
        self._jobs.append(
            self._scheduler.schedule_repeating(
                interval_seconds, sweep.run, name=sweep.name
            )
        )

    async def start(self) -> None:
        """Start the scheduler and install the periodic sweeps.

        A stopped service can be started again.
        """
        if self._started:
            return
        self._closed = False
        self._scheduler.start()
        if self._sweeps_enabled:
            for sweep, interval in self._sweeps:
                self._schedule_sweep(sweep, interval)
        self._started = True
        logger.info(
            "resilience_service_started",
            sweeps=[sweep.name for sweep, _ in self._sweeps],
            sweeps_enabled=self._sweeps_enabled,
        )

    async def stop(self) -> None:
        """Remove the sweeps, stop the scheduler and release the store.

        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True

        for job in self._jobs:
            job.cancel()
        self._jobs.clear()
        await self._scheduler.stop()
        self._started = False

        try:
            await self._kv.close()
        except Exception as e:
            logger.warning("key_value_store_close_failed", error=str(e))
        logger.info("resilience_service_stopped")

    async def health_check(self) -> Dict[str, Any]:
        """Report durable store reachability and tripped breakers."""
        try:
            store_ok = await self._kv.ping()
        except Exception as e:
            logger.warning("key_value_store_ping_failed", error=str(e))
            store_ok = False

        open_breakers = self.breakers.get_open_breakers()
        return {
            "healthy": store_ok,
            "store": "ok" if store_ok else "unavailable",
            "open_circuit_breakers": open_breakers,
            "started": self._started,
        }

    async def get_stats(self) -> Dict[str, Any]:
        """Breaker, retry record, fallback and sweep statistics."""
        try:
            retry_records = await self.retry_store.get_stats()
        except Exception as e:
            logger.warning("retry_store_stats_failed", error=str(e))
            retry_records = {"error": str(e)}

        return {
            "circuit_breakers": self.breakers.get_all_stats(),
            "open_circuit_breakers": self.breakers.get_open_breakers(),
            "retry_records": retry_records,
            "retry_queue_pending": self.retry_channel.pending,
            "fallback_handlers": self.fallbacks.registered_operations,
            "sweeps": {
                sweep.name: {
                    "interval_seconds": interval,
                    "running": sweep.running,
                    "run_count": sweep.run_count,
                    "last_stats": sweep.last_stats,
                }
                for sweep, interval in self._sweeps
            },
        }
