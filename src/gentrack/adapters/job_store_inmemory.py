"""In-memory implementation of JobStorePort.

Async-safe through a single asyncio.Lock. Records are deep-copied on the way
in and out, so a reader always sees a whole record as it was at the last
`register`/`update`, never a half-applied mutation.
"""
from __future__ import annotations

import asyncio
from copy import deepcopy
from datetime import timedelta
from typing import Dict, List, Optional

from gentrack.core.clock import Clock, utc_now
from gentrack.core.exceptions import DuplicateJobError
from gentrack.core.interfaces.job_store import JobStorePort
from gentrack.core.models.job import Job


class InMemoryJobStore(JobStorePort):
    def __init__(self, clock: Clock = utc_now) -> None:
        # dicts keep insertion order, which list_all relies on
        self._jobs: Dict[str, Job] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def register(self, job: Job) -> Job:
        async with self._lock:
            if job.id in self._jobs:
                raise DuplicateJobError(job.id)
            stored = deepcopy(job)
            self._jobs[job.id] = stored
            return deepcopy(stored)

    async def get(self, job_id: str) -> Optional[Job]:
        async with self._lock:
            j = self._jobs.get(job_id)
            return deepcopy(j) if j else None

    async def list_all(self) -> List[Job]:
        async with self._lock:
            return [deepcopy(j) for j in self._jobs.values()]

    async def update(self, job: Job) -> Job:
        async with self._lock:
            if job.id not in self._jobs:
                raise KeyError(job.id)
            stored = deepcopy(job)
            self._jobs[job.id] = stored
            return deepcopy(stored)

    async def evict_settled_older_than(self, duration: timedelta) -> List[str]:
        async with self._lock:
            now = self._clock()
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.settled_at is not None and now - job.settled_at > duration
            ]
            for job_id in expired:
                del self._jobs[job_id]
            return expired
