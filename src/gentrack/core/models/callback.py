from enum import StrEnum
from typing import Optional

from pydantic import BaseModel


class CallbackStep(StrEnum):
    record_result = "record_result"
    trigger_flow = "trigger_flow"


class CallbackResult(BaseModel):
    """Outcome of one outbound call to the messaging platform."""

    step: CallbackStep
    ok: bool
    status: Optional[int] = None
    detail: Optional[str] = None
