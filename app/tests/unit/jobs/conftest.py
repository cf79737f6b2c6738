"""Fixtures for recovery sweep tests."""

from datetime import timedelta

import pytest

from modules.batch_jobs import (
    BatchJob,
    BatchJobRecoveryRegistry,
    BatchJobStatus,
    InMemoryBatchJobStore,
)
from modules.sharegram import InMemoryIntegrationStore, SharegramIntegration


@pytest.fixture
def batch_job_store():
    return InMemoryBatchJobStore()


@pytest.fixture
def failed_job_factory(batch_job_store, virtual_scheduler):
    """Add a failed job created ``age_hours`` before the virtual now."""

    def _factory(job_id=1, job_type="performer_sync", age_hours=1, **kwargs):
        job = BatchJob(
            id=job_id,
            job_type=job_type,
            status=BatchJobStatus.FAILED,
            created_at=virtual_scheduler.now() - timedelta(hours=age_hours),
            **kwargs,
        )
        return batch_job_store.add(job)

    return _factory


@pytest.fixture
def job_registry():
    return BatchJobRecoveryRegistry()


@pytest.fixture
def integration_store():
    return InMemoryIntegrationStore()


@pytest.fixture
def integration_factory(integration_store):
    """Add an active api integration to the store."""

    def _factory(integration_id=1, configuration=None, integration_type="api"):
        if configuration is None:
            configuration = {"api_key": "k", "endpoint": "https://partner.example"}
        return integration_store.add(
            SharegramIntegration(
                id=integration_id,
                integration_type=integration_type,
                configuration=configuration,
            )
        )

    return _factory
