"""Job-type recovery functions for failed batch jobs.

Only job types registered here are resumed by the batch-job recovery
sweep; anything else is logged and skipped.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from infrastructure.logging import get_module_logger
from infrastructure.resilience.invoke import invoke
from modules.batch_jobs.models import BatchJob, BatchJobStatus
from modules.batch_jobs.store import BatchJobStore

logger = get_module_logger()

PERFORMER_SYNC = "performer_sync"
KYC_VERIFICATION = "kyc_verification"

# Runs the job's actual work and returns its result (sync or async)
JobRunner = Callable[[BatchJob], Any]


class BatchJobRecoveryRegistry:
    """Mapping of job type to the runner that resumes it."""

    def __init__(self) -> None:
        self._runners: Dict[str, JobRunner] = {}

    def register(self, job_type: str, runner: JobRunner) -> None:
        if job_type in self._runners:
            logger.warning("batch_job_runner_overwritten", job_type=job_type)
        self._runners[job_type] = runner

    def get(self, job_type: str) -> Optional[JobRunner]:
        return self._runners.get(job_type)

    @property
    def job_types(self) -> List[str]:
        return sorted(self._runners)

    def __contains__(self, job_type: str) -> bool:
        return job_type in self._runners


async def resume_job(
    job: BatchJob,
    store: BatchJobStore,
    runner: JobRunner,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> Any:
    """Resume one failed job: mark processing, run, mark completed.

    Every attempt records the same incremented retry count, so one recovery
    counts as one retry however many attempts it takes. Errors from the
    runner propagate to the caller's retry loop.
    """
    await invoke(
        store.update,
        job.id,
        status=BatchJobStatus.PROCESSING,
        error=None,
        retry_count=job.retry_count + 1,
    )
    result = await invoke(runner, job)
    await invoke(
        store.update,
        job.id,
        status=BatchJobStatus.COMPLETED,
        result=result,
        completed_at=clock(),
    )
    logger.info("batch_job_recovered", job_id=job.id, job_type=job.job_type)
    return result


def build_default_registry(
    sync_performers: Callable[[Dict[str, Any]], Any],
    verify_kyc: Callable[[Any], Any],
) -> BatchJobRecoveryRegistry:
    """Registry with the two recoverable job types.

    Args:
        sync_performers: Performer sync collaborator, called with the job
            parameters
        verify_kyc: KYC verification collaborator, called with
            ``parameters["kyc_request_id"]``
    """

    async def resume_performer_sync(job: BatchJob) -> Any:
        return await invoke(sync_performers, job.parameters)

    async def resume_kyc_verification(job: BatchJob) -> Any:
        return await invoke(verify_kyc, job.parameters["kyc_request_id"])

    registry = BatchJobRecoveryRegistry()
    registry.register(PERFORMER_SYNC, resume_performer_sync)
    registry.register(KYC_VERIFICATION, resume_kyc_verification)
    return registry
