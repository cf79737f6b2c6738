"""Fixtures for batch job tests."""

from datetime import datetime, timedelta, timezone

import pytest

from modules.batch_jobs import BatchJob, BatchJobStatus, InMemoryBatchJobStore

NOW = datetime(2024, 1, 2, tzinfo=timezone.utc)


@pytest.fixture
def batch_job_factory():
    """Factory for BatchJob instances created ``age_hours`` before NOW."""

    def _factory(
        job_id=1,
        job_type="performer_sync",
        status=BatchJobStatus.FAILED,
        age_hours=1,
        **kwargs,
    ):
        return BatchJob(
            id=job_id,
            job_type=job_type,
            status=status,
            created_at=NOW - timedelta(hours=age_hours),
            **kwargs,
        )

    return _factory


@pytest.fixture
def batch_job_store():
    return InMemoryBatchJobStore()
