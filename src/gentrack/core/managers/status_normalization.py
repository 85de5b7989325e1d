"""Fold a provider status document into a ProbeOutcome.

The provider is observed to spell its states inconsistently across API
versions ("completed" vs "succeeded", "cancelled" vs "canceled"), so states
are compared lower-cased against small vocabularies.
"""

from typing import Any, Optional

from gentrack.core.managers.artifact_extraction import extract_artifacts
from gentrack.core.models.outcome import Failed, ProbeOutcome, StillProcessing, Succeeded

SUCCESS_STATES = frozenset({"completed", "succeeded"})
FAILURE_STATES = frozenset({"failed", "error", "cancelled", "canceled"})
CANCELLED_STATES = frozenset({"cancelled", "canceled"})


def read_state(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    state = payload.get("status") or payload.get("state")
    if not isinstance(state, str):
        return None
    return state.strip().lower() or None


def failure_reason(payload: dict, state: str) -> str:
    for key in ("error", "message"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict) and value:
            # some error envelopes nest the text one level down
            nested = value.get("message") or value.get("detail")
            if isinstance(nested, str) and nested:
                return nested
    return f"Generation {state}"


def normalize_status_payload(payload: Any) -> ProbeOutcome:
    state = read_state(payload)
    if state is None:
        return StillProcessing(transient_error="status document without a state")
    if state in SUCCESS_STATES:
        return Succeeded(artifacts=extract_artifacts(payload))
    if state in FAILURE_STATES:
        return Failed(
            reason=failure_reason(payload, state),
            cancelled=state in CANCELLED_STATES,
        )
    return StillProcessing(provider_state=state)
