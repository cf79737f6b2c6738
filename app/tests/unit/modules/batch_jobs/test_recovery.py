"""Unit tests for batch job recovery functions."""

from datetime import datetime, timezone

import pytest

from modules.batch_jobs import (
    KYC_VERIFICATION,
    PERFORMER_SYNC,
    BatchJobRecoveryRegistry,
    BatchJobStatus,
    build_default_registry,
    resume_job,
)

COMPLETED_AT = datetime(2024, 1, 2, 12, tzinfo=timezone.utc)


@pytest.mark.unit
class TestResumeJob:
    """Tests for resume_job()."""

    @pytest.mark.asyncio
    async def test_success_marks_completed(self, batch_job_store, batch_job_factory):
        job = batch_job_store.add(batch_job_factory(job_id=1, error="boom"))

        async def runner(batch_job):
            return {"synced": 3}

        result = await resume_job(job, batch_job_store, runner, clock=lambda: COMPLETED_AT)

        stored = batch_job_store.get(1)
        assert result == {"synced": 3}
        assert stored.status == BatchJobStatus.COMPLETED
        assert stored.result == {"synced": 3}
        assert stored.retry_count == 1
        assert stored.error is None
        assert stored.completed_at == COMPLETED_AT

    @pytest.mark.asyncio
    async def test_failure_leaves_job_processing(self, batch_job_store, batch_job_factory):
        """Runner errors propagate so the retry loop can classify them."""
        job = batch_job_store.add(batch_job_factory(job_id=1))

        def runner(batch_job):
            raise ConnectionError("sync API down")

        with pytest.raises(ConnectionError):
            await resume_job(job, batch_job_store, runner)

        stored = batch_job_store.get(1)
        assert stored.status == BatchJobStatus.PROCESSING
        assert stored.retry_count == 1

    @pytest.mark.asyncio
    async def test_repeated_attempts_use_same_retry_count(
        self, batch_job_store, batch_job_factory
    ):
        job = batch_job_factory(job_id=1, retry_count=1)
        batch_job_store.add(job)
        snapshot = batch_job_store.get(1)

        def runner(batch_job):
            raise ConnectionError("down")

        for _ in range(3):
            with pytest.raises(ConnectionError):
                await resume_job(snapshot, batch_job_store, runner)

        assert batch_job_store.get(1).retry_count == 2


@pytest.mark.unit
class TestRecoveryRegistry:
    """Tests for the job-type registry."""

    def test_register_and_get(self):
        registry = BatchJobRecoveryRegistry()
        runner = lambda job: None  # noqa: E731

        registry.register("export", runner)

        assert registry.get("export") is runner
        assert "export" in registry
        assert registry.get("unknown") is None

    def test_default_registry_job_types(self):
        registry = build_default_registry(lambda p: None, lambda k: None)

        assert registry.job_types == [KYC_VERIFICATION, PERFORMER_SYNC]

    @pytest.mark.asyncio
    async def test_performer_sync_receives_parameters(self, batch_job_factory):
        calls = []
        registry = build_default_registry(calls.append, lambda k: None)
        job = batch_job_factory(parameters={"studio_id": 4})

        await registry.get(PERFORMER_SYNC)(job)

        assert calls == [{"studio_id": 4}]

    @pytest.mark.asyncio
    async def test_kyc_receives_request_id(self, batch_job_factory):
        calls = []

        async def verify(kyc_request_id):
            calls.append(kyc_request_id)
            return "verified"

        registry = build_default_registry(lambda p: None, verify)
        job = batch_job_factory(job_type=KYC_VERIFICATION, parameters={"kyc_request_id": 7})

        assert await registry.get(KYC_VERIFICATION)(job) == "verified"
        assert calls == [7]

    @pytest.mark.asyncio
    async def test_kyc_without_request_id(self, batch_job_factory):
        registry = build_default_registry(lambda p: None, lambda k: None)
        job = batch_job_factory(job_type=KYC_VERIFICATION)

        with pytest.raises(KeyError):
            await registry.get(KYC_VERIFICATION)(job)
