from typing import Protocol

from gentrack.core.models.outcome import ProbeOutcome


class StatusProberPort(Protocol):
    """One status round-trip to the generation provider."""

    async def probe(self, job_id: str) -> ProbeOutcome:  # pragma: no cover - protocol
        """Never raises: transport and parsing problems come back as
        StillProcessing so they count toward the attempt ceiling."""
        ...

    async def fetch_status(self, job_id: str) -> ProbeOutcome:  # pragma: no cover - protocol
        """Strict variant for on-demand lookups.

        Raises MissingCredentialsError without provider credentials and lets
        UpstreamException through for any transport or HTTP failure.
        """
        ...
