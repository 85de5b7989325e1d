"""JobStorePort: hexagonal port for the registry of tracked jobs.

Async methods keep the door open for a networked store; the in-memory
adapter still uses async for interface uniformity.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import List, Optional

from gentrack.core.models.job import Job


class JobStorePort(ABC):
	"""Port abstraction for tracked job records."""

	@abstractmethod
	async def register(self, job: Job) -> Job:
		"""Insert a new job; raise DuplicateJobError if the id is taken."""
		raise NotImplementedError

	@abstractmethod
	async def get(self, job_id: str) -> Optional[Job]:
		"""Return a snapshot of the job or None if not found."""
		raise NotImplementedError

	@abstractmethod
	async def list_all(self) -> List[Job]:
		"""Snapshot of all jobs in insertion order."""
		raise NotImplementedError

	@abstractmethod
	async def update(self, job: Job) -> Job:
		"""Atomically replace an existing record; raise KeyError if it is gone."""
		raise NotImplementedError

	@abstractmethod
	async def evict_settled_older_than(self, duration: timedelta) -> List[str]:
		"""Drop settled jobs whose settled_at is older than `duration`; return evicted ids."""
		raise NotImplementedError
