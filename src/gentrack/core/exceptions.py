from typing import Any, Optional
from gentrack.core.models.problem import ProblemDetail


class UpstreamException(Exception):
    """Raised by HTTP adapters when a remote service misbehaves."""
    def __init__(self, response: ProblemDetail):
        self.response = response
        super().__init__(response.detail)


# Domain-specific tracker exceptions

class JobTrackerError(Exception):
    """Base exception for job tracker failures.

    Attributes:
        message: Human-readable error description
        job_id: Optional job identifier
    """
    def __init__(self, message: str, job_id: Optional[str] = None):
        self.message = message
        self.job_id = job_id
        super().__init__(message)


class DuplicateJobError(JobTrackerError):
    """Raised when a job id is registered twice."""
    def __init__(self, job_id: str):
        super().__init__(message=f"Job already registered: {job_id}", job_id=job_id)


class MissingCredentialsError(JobTrackerError):
    """Raised by the submission path when no provider credentials are configured."""
    def __init__(self):
        super().__init__(
            message="Server missing Higgsfield credentials",
        )
        self.hint = (
            "Set HIGGSFIELD_KEY_ID/HIGGSFIELD_KEY_SECRET or HIGGSFIELD_BEARER_TOKEN"
        )


class GenerationSubmitError(JobTrackerError):
    """Raised when the provider refuses or garbles a generation submission.

    Attributes:
        upstream_status: HTTP status to surface to the caller
        upstream_body: Parsed provider body (if any)
    """
    def __init__(
        self,
        message: str,
        upstream_status: int,
        upstream_body: Any = None,
        job_id: Optional[str] = None,
    ):
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        super().__init__(message=message, job_id=job_id)
