"""Batch jobs: model, store contract and job-type recovery functions."""

from modules.batch_jobs.models import BatchJob, BatchJobStatus
from modules.batch_jobs.recovery import (
    KYC_VERIFICATION,
    PERFORMER_SYNC,
    BatchJobRecoveryRegistry,
    build_default_registry,
    resume_job,
)
from modules.batch_jobs.store import BatchJobStore, InMemoryBatchJobStore

__all__ = [
    "BatchJob",
    "BatchJobStatus",
    "BatchJobStore",
    "InMemoryBatchJobStore",
    "BatchJobRecoveryRegistry",
    "build_default_registry",
    "resume_job",
    "PERFORMER_SYNC",
    "KYC_VERIFICATION",
]
