"""Wiring of the recovery sweeps into a resilience service.

The retry replay sweep is owned by the service itself; this module adds the
batch-job recovery and integration health sweeps for whichever collaborator
stores the process provides.
"""

from typing import List, Optional, TYPE_CHECKING

from infrastructure.logging import get_module_logger
from infrastructure.resilience.service import ResilienceService
from infrastructure.scheduling.sweep import Sweep
from jobs.batch_job_recovery import BatchJobRecoverySweep
from jobs.integration_health import HealthCheck, IntegrationHealthSweep
from modules.batch_jobs.recovery import BatchJobRecoveryRegistry
from modules.batch_jobs.store import BatchJobStore
from modules.sharegram.health import SharegramHealthClient
from modules.sharegram.store import IntegrationStore

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


def init(
    service: ResilienceService,
    settings: Optional["Settings"] = None,
    batch_job_store: Optional[BatchJobStore] = None,
    job_registry: Optional[BatchJobRecoveryRegistry] = None,
    integration_store: Optional[IntegrationStore] = None,
    health_check: Optional[HealthCheck] = None,
) -> List[Sweep]:
    """Add the collaborator sweeps to ``service``.

    Args:
        service: Service the sweeps run through (start() schedules them)
        settings: Application settings. If None, uses get_settings()
        batch_job_store: Batch-job collaborator; the sweep is skipped without it
        job_registry: Recoverable job types; required with batch_job_store
        integration_store: Integration collaborator; the sweep is skipped
            without it
        health_check: Health probe, defaults to SharegramHealthClient.check

    Returns:
        The sweeps that were added
    """
    if settings is None:
        from infrastructure.services.providers import get_settings

        settings = get_settings()

    sweeps = settings.sweeps
    added: List[Sweep] = []

    if batch_job_store is not None and job_registry is not None:
        batch_sweep = BatchJobRecoverySweep(
            service,
            batch_job_store,
            job_registry,
            window_hours=sweeps.batch_job_window_hours,
            limit=sweeps.batch_job_limit,
            max_retries=sweeps.batch_job_max_retries,
        )
        service.add_sweep(batch_sweep, sweeps.batch_job_interval_seconds)
        added.append(batch_sweep)
    else:
        logger.info("batch_job_recovery_sweep_not_configured")

    if integration_store is not None:
        health_sweep = IntegrationHealthSweep(
            service,
            integration_store,
            health_check or SharegramHealthClient().check,
            max_retries=sweeps.integration_max_retries,
            initial_delay_seconds=sweeps.integration_initial_delay_seconds,
        )
        service.add_sweep(health_sweep, sweeps.integration_interval_seconds)
        added.append(health_sweep)
    else:
        logger.info("integration_health_sweep_not_configured")

    logger.info("scheduled_tasks_initialized", sweeps=[sweep.name for sweep in added])
    return added
