"""
In-process queue for work that runs after a response has been sent.

Jobs are plain coroutines executed with asyncio.create_task(). The queue keeps
a record per job so pending work stays observable (and drainable in tests)
instead of disappearing into fire-and-forget callbacks.

There is no retry, timeout or cancellation: a stalled job only delays itself.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from groupwork.utils.time import utc_now

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    """Job execution status."""
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobResult:
    """Record of one deferred job."""
    job_id: str
    name: str
    status: JobStatus
    submitted_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class JobQueue:
    """Simple in-process job queue using asyncio."""

    def __init__(self, max_records: int = 1000) -> None:
        self.max_records = max_records
        self._jobs: Dict[str, JobResult] = {}
        self._running_tasks: Dict[str, asyncio.Task] = {}

    def submit(
        self,
        job_func: Callable[..., Awaitable[Any]],
        *args: Any,
        name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> str:
        """
        Schedule `job_func(*args, **kwargs)` on the running loop.

        Must be called from inside the event loop. Returns the job id.
        """
        job_id = str(uuid.uuid4())
        job = JobResult(
            job_id=job_id,
            name=name or getattr(job_func, "__name__", "job"),
            status=JobStatus.QUEUED,
            submitted_at=utc_now(),
            metadata=metadata or {},
        )
        self._jobs[job_id] = job
        if len(self._jobs) > self.max_records:
            self.cleanup_finished(older_than=timedelta(0))

        task = asyncio.create_task(self._execute_job(job, job_func, args, kwargs))
        self._running_tasks[job_id] = task
        task.add_done_callback(lambda _: self._running_tasks.pop(job_id, None))

        logger.debug("Job %s (%s) submitted", job_id, job.name)
        return job_id

    async def _execute_job(
        self,
        job: JobResult,
        job_func: Callable[..., Awaitable[Any]],
        args: tuple,
        kwargs: dict,
    ) -> None:
        job.status = JobStatus.RUNNING
        job.started_at = utc_now()
        try:
            await job_func(*args, **kwargs)
        except Exception as e:
            job.status = JobStatus.FAILED
            job.error = str(e)
            logger.warning("Job %s (%s) failed: %s", job.job_id, job.name, e, exc_info=True)
        else:
            job.status = JobStatus.COMPLETED
        finally:
            job.finished_at = utc_now()

    @property
    def pending_count(self) -> int:
        return len(self._running_tasks)

    def get_job(self, job_id: str) -> Optional[JobResult]:
        return self._jobs.get(job_id)

    def jobs(self, status: Optional[JobStatus] = None) -> List[JobResult]:
        return [j for j in self._jobs.values() if status is None or j.status == status]

    async def drain(self) -> None:
        """Wait until every job submitted so far (and any they submit) has finished."""
        while self._running_tasks:
            await asyncio.gather(*list(self._running_tasks.values()), return_exceptions=True)

    def cleanup_finished(self, older_than: timedelta = timedelta(hours=1)) -> int:
        """Forget finished job records older than `older_than`."""
        cutoff = utc_now() - older_than
        stale = [
            job_id
            for job_id, job in self._jobs.items()
            if job.status in (JobStatus.COMPLETED, JobStatus.FAILED)
            and job.finished_at is not None
            and job.finished_at < cutoff
        ]
        for job_id in stale:
            del self._jobs[job_id]
        if stale:
            logger.info("Cleaned up %d finished jobs", len(stale))
        return len(stale)
