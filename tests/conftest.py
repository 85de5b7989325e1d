"""Shared fakes for tracker tests.

The fakes are deliberately small: each one records what it was asked to do so
tests can assert on call order and counts without touching the network.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from gentrack.adapters.job_store_inmemory import InMemoryJobStore
from gentrack.core.config import JobTrackerConfig
from gentrack.core.managers.job_tracker import JobTracker
from gentrack.core.managers.poll_scheduler import PollScheduler
from gentrack.core.models.callback import CallbackResult, CallbackStep
from gentrack.core.models.job import Job
from gentrack.core.models.outcome import ProbeOutcome, StillProcessing


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class ScriptedProber:
    """Returns queued outcomes per job id; StillProcessing once a queue runs dry.

    Set `gate` to an asyncio.Event to hold every probe until the test releases it.
    """

    def __init__(self, script: Optional[Dict[str, List[Any]]] = None):
        self.script: Dict[str, List[Any]] = {k: list(v) for k, v in (script or {}).items()}
        self.calls: List[str] = []
        self.gate: Optional[asyncio.Event] = None

    async def probe(self, job_id: str) -> ProbeOutcome:
        self.calls.append(job_id)
        if self.gate is not None:
            await self.gate.wait()
        queue = self.script.get(job_id) or []
        if not queue:
            return StillProcessing(provider_state="in_progress")
        outcome = queue.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingDispatcher:
    def __init__(self):
        self.calls: List[Job] = []

    async def dispatch(self, job: Job) -> List[CallbackResult]:
        self.calls.append(job)
        return [CallbackResult(step=CallbackStep.record_result, ok=True, status=200)]


class RecordingMessagingClient:
    """MessagingClientPort fake; `events` keeps the call order."""

    def __init__(self, record_ok: bool = True, flow_ok: bool = True):
        self.events: List[tuple] = []
        self.record_ok = record_ok
        self.flow_ok = flow_ok

    async def record_result(self, contact_id: str, value: str) -> CallbackResult:
        self.events.append(("record_result", contact_id, value))
        return CallbackResult(
            step=CallbackStep.record_result,
            ok=self.record_ok,
            status=200 if self.record_ok else 500,
        )

    async def trigger_flow(self, contact_id: str) -> CallbackResult:
        self.events.append(("trigger_flow", contact_id))
        return CallbackResult(
            step=CallbackStep.trigger_flow,
            ok=self.flow_ok,
            status=200 if self.flow_ok else 500,
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker_config():
    """Short, test-friendly policy: the timer never fires on its own."""
    return JobTrackerConfig(
        poll_interval=60.0,
        max_poll_attempts=3,
        first_poll_delay=0.0,
        callback_delay=0.0,
        retention=3600.0,
    )


@pytest.fixture
def store(clock):
    return InMemoryJobStore(clock=clock)


@pytest.fixture
def prober():
    return ScriptedProber()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
async def scheduler(store, prober, dispatcher, tracker_config, clock):
    sched = PollScheduler(store, prober, dispatcher, tracker_config, clock=clock)
    yield sched
    await sched.stop()


@pytest.fixture
def tracker(store, scheduler, clock):
    return JobTracker(store, scheduler, clock=clock)
