"""Batch-job store contract and in-memory implementation.

The recovery sweep only needs to find jobs by status and recency and to
update status, result and retry count. Implementations may be sync or async.
"""

import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Union

from infrastructure.logging import get_module_logger
from modules.batch_jobs.models import BatchJob, BatchJobStatus

logger = get_module_logger()

JobId = Union[int, str]

UPDATABLE_FIELDS = frozenset(
    {"status", "error", "result", "retry_count", "completed_at", "parameters"}
)


class BatchJobStore(Protocol):
    """Opaque record store keyed by job id."""

    def find_by_status(
        self, status: BatchJobStatus, since: datetime, limit: int
    ) -> List[BatchJob]:
        """Jobs in ``status`` created at or after ``since``, newest first."""
        ...

    def update(self, job_id: JobId, **changes: Any) -> Optional[BatchJob]:
        """Apply field changes; returns the updated job or None if unknown."""
        ...


class InMemoryBatchJobStore:
    """Thread-safe in-memory batch-job store for development and tests."""

    def __init__(self) -> None:
        self._jobs: Dict[JobId, BatchJob] = {}
        self._lock = threading.Lock()

    def add(self, job: BatchJob) -> BatchJob:
        with self._lock:
            self._jobs[job.id] = job
        return job

    def get(self, job_id: JobId) -> Optional[BatchJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job else None

    def find_by_status(
        self, status: BatchJobStatus, since: datetime, limit: int
    ) -> List[BatchJob]:
        with self._lock:
            matches = [
                replace(job)
                for job in self._jobs.values()
                if job.status == status and job.created_at >= since
            ]
        matches.sort(key=lambda job: job.created_at, reverse=True)
        return matches[:limit]

    def update(self, job_id: JobId, **changes: Any) -> Optional[BatchJob]:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown batch job fields: {', '.join(sorted(unknown))}")
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning("batch_job_not_found", job_id=job_id)
                return None
            for name, value in changes.items():
                setattr(job, name, value)
            return replace(job)
