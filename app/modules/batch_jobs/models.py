"""Batch job model as seen by the recovery sweeps."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union


class BatchJobStatus(Enum):
    """Lifecycle states of a batch job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class BatchJob:
    """A unit of background work tracked by the batch-job store.

    Attributes:
        id: Store identifier.
        job_type: Type name selecting the recovery function (e.g. 'performer_sync').
        status: Current lifecycle state.
        parameters: Job-type specific input (e.g. {'kyc_request_id': 7}).
        retry_count: How many times the job was resumed.
        max_retries: Resume limit; exhausted jobs are left alone.
        error: Last error message, if any.
        result: Output of the last successful run.
        created_at: Creation time (UTC).
        completed_at: Completion time of the last successful run.
    """

    id: Union[int, str]
    job_type: str
    status: BatchJobStatus = BatchJobStatus.PENDING
    parameters: Dict[str, Any] = field(default_factory=dict)
    retry_count: int = 0
    max_retries: int = 3
    error: Optional[str] = None
    result: Optional[Any] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def retries_exhausted(self) -> bool:
        return self.retry_count >= self.max_retries
