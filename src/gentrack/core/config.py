"""Configuration models for core domain components.

Pydantic-based configuration classes consolidate the settings each manager
needs, so composition roots and tests can inject them explicitly.
"""

from pydantic import BaseModel, Field, model_validator


class JobTrackerConfig(BaseModel):
    """Polling and callback policy for the job tracker.

    Attributes:
        poll_interval: Seconds between scheduler ticks
        max_poll_attempts: Non-terminal poll rounds tolerated before a job times out
        first_poll_delay: Seconds before the one-off early probe of a new job
        callback_delay: Seconds between the two messaging callbacks
        retention: Seconds a settled job stays in the store
    """

    poll_interval: float = Field(
        default=15.0,
        gt=0,
        description="Interval in seconds between scheduler ticks"
    )

    max_poll_attempts: int = Field(
        default=40,
        ge=1,
        description="Poll rounds without a terminal outcome before the job fails with a timeout"
    )

    first_poll_delay: float = Field(
        default=5.0,
        ge=0,
        description="Delay in seconds before the early probe of a freshly registered job"
    )

    callback_delay: float = Field(
        default=2.0,
        ge=0,
        description="Delay in seconds between the result field update and the flow trigger"
    )

    retention: float = Field(
        default=3600.0,
        gt=0,
        description="Seconds a settled job is kept before eviction"
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @model_validator(mode="after")
    def first_poll_before_first_tick(self) -> "JobTrackerConfig":
        if self.first_poll_delay >= self.poll_interval:
            raise ValueError("first_poll_delay must be shorter than poll_interval")
        return self

    @classmethod
    def from_app_settings(cls, settings) -> "JobTrackerConfig":
        """Factory method to construct config from a GentrackSettings instance."""
        return cls(
            poll_interval=settings.GENTRACK_POLL_INTERVAL,
            max_poll_attempts=settings.GENTRACK_MAX_POLL_ATTEMPTS,
            first_poll_delay=settings.GENTRACK_FIRST_POLL_DELAY,
            callback_delay=settings.GENTRACK_CALLBACK_DELAY,
            retention=settings.GENTRACK_JOB_RETENTION,
        )
