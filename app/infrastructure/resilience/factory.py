"""Factory for creating the resilience service from configuration."""

from typing import Optional, TYPE_CHECKING

from infrastructure.logging import get_module_logger
from infrastructure.persistence import KeyValueStore, create_key_value_store
from infrastructure.resilience.policy import OperationPolicy
from infrastructure.resilience.service import ResilienceService
from infrastructure.scheduling import AsyncioScheduler, Scheduler

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


def create_resilience_service(
    settings: Optional["Settings"] = None,
    scheduler: Optional[Scheduler] = None,
    kv_store: Optional[KeyValueStore] = None,
) -> ResilienceService:
    """Build a ResilienceService wired from settings.

    Args:
        settings: Application settings. If None, uses get_settings()
        scheduler: Scheduler override (tests pass a VirtualScheduler)
        kv_store: Key-value store override. If None, created from
            settings.recovery.backend

    Returns:
        A ResilienceService, not yet started

    Raises:
        ValueError: On an unknown backend or an invalid default policy

    Examples:
        >>> service = create_resilience_service()
        >>> service = create_resilience_service(scheduler=VirtualScheduler(),
        ...                                     kv_store=InMemoryKeyValueStore())
    """
    if settings is None:
        from infrastructure.services.providers import get_settings

        settings = get_settings()

    policy = OperationPolicy.from_settings(settings.recovery)
    service = ResilienceService(
        policy=policy,
        kv_store=kv_store or create_key_value_store(settings),
        scheduler=scheduler or AsyncioScheduler(),
        fallback_cache_ttl_seconds=settings.recovery.fallback_cache_ttl_seconds,
        retry_queue_maxsize=settings.recovery.retry_queue_maxsize,
        retry_sweep_interval_seconds=settings.sweeps.retry_interval_seconds,
        sweeps_enabled=settings.sweeps.enabled,
    )
    logger.info(
        "resilience_service_created",
        backend=settings.recovery.backend,
        max_retries=policy.max_retries,
        timeout_seconds=policy.timeout_seconds,
        circuit_breaker_threshold=policy.circuit_breaker_threshold,
    )
    return service
