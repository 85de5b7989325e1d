"""JobTracker: the surface the HTTP layer talks to.

Wraps the job store and the poll scheduler so that registering a job also
makes sure the recurring poll timer is running and queues the early first
probe for that job.
"""

from __future__ import annotations

from typing import List, Optional

from gentrack.core.clock import Clock, utc_now
from gentrack.core.interfaces.job_store import JobStorePort
from gentrack.core.managers.poll_scheduler import PollScheduler
from gentrack.core.models.job import Job, JobState, OwnerRef
from gentrack.core.settings import logger


class JobTracker:
    def __init__(
        self,
        store: JobStorePort,
        scheduler: PollScheduler,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._clock = clock

    @property
    def scheduler(self) -> PollScheduler:
        return self._scheduler

    async def register(self, job_id: str, owner: OwnerRef) -> Job:
        """Start tracking a provider request; raises DuplicateJobError on reuse."""
        job = Job(id=job_id, owner=owner, state=JobState.polling, created_at=self._clock())
        stored = await self._store.register(job)
        logger.info(f"[job:register] added job job_id={job_id} contact_id={owner.contact_id}")
        self._scheduler.ensure_running()
        self._scheduler.schedule_first_poll(job_id)
        return stored

    async def get(self, job_id: str) -> Optional[Job]:
        return await self._store.get(job_id)

    async def list_all(self) -> List[Job]:
        return await self._store.list_all()

    async def shutdown(self) -> None:
        await self._scheduler.stop()
