from typing import Protocol

from gentrack.core.models.callback import CallbackResult
from gentrack.core.models.job import Job


class MessagingClientPort(Protocol):
    """Typed client for the messaging platform callbacks."""

    async def record_result(self, contact_id: str, value: str) -> CallbackResult:  # pragma: no cover - protocol
        """Store `value` in the contact's result field."""
        ...

    async def trigger_flow(self, contact_id: str) -> CallbackResult:  # pragma: no cover - protocol
        """Start the configured flow for the contact."""
        ...


class CallbackDispatcherPort(Protocol):
    async def dispatch(self, job: Job) -> list[CallbackResult]:  # pragma: no cover - protocol
        ...
