"""Sweep re-driving batch jobs stuck in the failed state."""

from datetime import timedelta
from functools import partial
from typing import Any, Dict

from infrastructure.logging import get_module_logger
from infrastructure.resilience.invoke import invoke
from infrastructure.resilience.service import ResilienceService
from infrastructure.scheduling.sweep import Sweep
from modules.batch_jobs.models import BatchJob, BatchJobStatus
from modules.batch_jobs.recovery import BatchJobRecoveryRegistry, resume_job
from modules.batch_jobs.store import BatchJobStore

logger = get_module_logger()


def operation_name_for(job: BatchJob) -> str:
    return f"batch_job_{job.job_type}"


class BatchJobRecoverySweep(Sweep):
    """Resume recently failed jobs of known types through the retry executor.

    Jobs of unknown types and jobs that used up their retries are skipped.
    A job whose recovery ends in a fallback is marked failed again with the
    fallback reason.
    """

    name = "batch_job_recovery"

    def __init__(
        self,
        service: ResilienceService,
        store: BatchJobStore,
        registry: BatchJobRecoveryRegistry,
        window_hours: int = 24,
        limit: int = 10,
        max_retries: int = 3,
    ) -> None:
        super().__init__()
        self._service = service
        self._store = store
        self._registry = registry
        self._window = timedelta(hours=window_hours)
        self._limit = limit
        self._max_retries = max_retries

    async def _sweep(self) -> Dict[str, Any]:
        clock = self._service.scheduler.now
        since = clock() - self._window
        jobs = await invoke(
            self._store.find_by_status, BatchJobStatus.FAILED, since, self._limit
        )

        stats = {
            "found": len(jobs),
            "recovered": 0,
            "failed": 0,
            "skipped_unknown_type": 0,
            "skipped_exhausted": 0,
        }

        for job in jobs:
            runner = self._registry.get(job.job_type)
            if runner is None:
                logger.warning(
                    "batch_job_type_unknown", job_id=job.id, job_type=job.job_type
                )
                stats["skipped_unknown_type"] += 1
                continue
            if job.retries_exhausted:
                logger.info(
                    "batch_job_retries_exhausted",
                    job_id=job.id,
                    retry_count=job.retry_count,
                    max_retries=job.max_retries,
                )
                stats["skipped_exhausted"] += 1
                continue

            result = await self._service.execute_with_retry(
                operation_name_for(job),
                partial(resume_job, job, self._store, runner, clock),
                context={"job_id": job.id},
                max_retries=self._max_retries,
            )

            if result.is_success and not result.is_fallback:
                stats["recovered"] += 1
                continue

            stats["failed"] += 1
            try:
                await invoke(
                    self._store.update,
                    job.id,
                    status=BatchJobStatus.FAILED,
                    error=result.message,
                )
            except Exception as e:
                logger.error(
                    "batch_job_status_update_failed", job_id=job.id, error=str(e)
                )

        return stats
