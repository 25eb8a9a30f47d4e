import asyncio
from datetime import timedelta

import pytest

from groupwork.services.job_queue import JobQueue, JobStatus

pytestmark = pytest.mark.unit


def test_submitted_job_runs_after_caller_returns():
    queue = JobQueue()
    seen = []

    async def job(value):
        seen.append(value)

    async def scenario():
        job_id = queue.submit(job, 42, name="record")
        assert seen == []
        await queue.drain()
        return job_id

    job_id = asyncio.run(scenario())

    assert seen == [42]
    assert queue.get_job(job_id).status == JobStatus.COMPLETED
    assert queue.pending_count == 0


def test_failed_job_is_recorded_not_raised():
    queue = JobQueue()

    async def boom():
        raise RuntimeError("store down")

    async def scenario():
        job_id = queue.submit(boom)
        await queue.drain()
        return job_id

    job = queue.get_job(asyncio.run(scenario()))

    assert job.status == JobStatus.FAILED
    assert "store down" in job.error


def test_drain_waits_for_jobs_submitted_by_jobs():
    queue = JobQueue()
    seen = []

    async def child():
        seen.append("child")

    async def parent():
        queue.submit(child)
        seen.append("parent")

    async def scenario():
        queue.submit(parent)
        await queue.drain()

    asyncio.run(scenario())

    assert seen == ["parent", "child"]


def test_cleanup_forgets_finished_jobs():
    queue = JobQueue()

    async def noop():
        return None

    async def scenario():
        for _ in range(3):
            queue.submit(noop)
        await queue.drain()

    asyncio.run(scenario())

    assert queue.cleanup_finished(older_than=timedelta(0)) == 3
    assert queue.jobs() == []
