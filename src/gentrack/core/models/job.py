from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, timezone
from enum import StrEnum


class JobState(StrEnum):
    polling = "polling"
    succeeded = "succeeded"
    failed = "failed"


class OwnerRef(BaseModel):
    """Caller identifiers carried through to the messaging callbacks untouched."""

    contact_id: str
    user_id: Optional[str] = None


class Job(BaseModel):
    """Tracked generation request (internal domain model).

    Notes:
    - `id` is the request id issued by the generation provider; it is also the store key.
    - `results` only ever holds artifact locations once the job succeeded. A succeeded
      job can still carry an empty list when the provider reported success without
      any artifact we recognize; that case is logged and no callback is sent.
    - `settled_at` is stamped exactly once, on the transition out of `polling`.
    - `callback_dispatched_at` guards against a second dispatch for the same job.
    """

    id: str
    owner: OwnerRef
    state: JobState = JobState.polling
    poll_attempts: int = 0
    results: List[str] = Field(default_factory=list)
    failure_reason: Optional[str] = None
    cancelled: bool = False

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Local registration timestamp (UTC)",
    )
    settled_at: Optional[datetime] = None
    callback_dispatched_at: Optional[datetime] = None

    def is_settled(self) -> bool:
        return self.state != JobState.polling

    def mark_succeeded(self, results: List[str], now: datetime) -> None:
        self.state = JobState.succeeded
        self.results = list(results)
        self.settled_at = now

    def mark_failed(self, reason: str, now: datetime, cancelled: bool = False) -> None:
        self.state = JobState.failed
        self.failure_reason = reason
        self.cancelled = cancelled
        self.settled_at = now


class JobSummary(BaseModel):
    """Trimmed job view used by the listing endpoint."""

    requestId: str
    contactId: str
    status: JobState
    pollCount: int
    images: int
    createdAt: datetime
    completedAt: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobSummary":
        return cls(
            requestId=job.id,
            contactId=job.owner.contact_id,
            status=job.state,
            pollCount=job.poll_attempts,
            images=len(job.results),
            createdAt=job.created_at,
            completedAt=job.settled_at,
        )


class JobDetail(BaseModel):
    requestId: str
    contactId: str
    userId: Optional[str] = None
    status: JobState
    pollCount: int
    images: List[str]
    error: Optional[str] = None
    cancelled: bool = False
    createdAt: datetime
    completedAt: Optional[datetime] = None
    callbackSentAt: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobDetail":
        return cls(
            requestId=job.id,
            contactId=job.owner.contact_id,
            userId=job.owner.user_id,
            status=job.state,
            pollCount=job.poll_attempts,
            images=job.results,
            error=job.failure_reason,
            cancelled=job.cancelled,
            createdAt=job.created_at,
            completedAt=job.settled_at,
            callbackSentAt=job.callback_dispatched_at,
        )


class JobList(BaseModel):
    total: int
    polling: int
    succeeded: int
    failed: int
    jobs: List[JobSummary]
