"""Normalized probe outcomes.

The provider's status vocabulary and result layout are not stable, so the status
prober folds every response into one of three tagged variants. Nothing past the
prober sees provider field names.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class StillProcessing(BaseModel):
    kind: Literal["still_processing"] = "still_processing"
    provider_state: Optional[str] = None
    # set when the probe itself failed (network, non-2xx, malformed body)
    transient_error: Optional[str] = None


class Succeeded(BaseModel):
    kind: Literal["succeeded"] = "succeeded"
    artifacts: List[str] = Field(default_factory=list)


class Failed(BaseModel):
    kind: Literal["failed"] = "failed"
    reason: str
    cancelled: bool = False


ProbeOutcome = Annotated[
    Union[StillProcessing, Succeeded, Failed], Field(discriminator="kind")
]
