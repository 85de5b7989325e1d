"""PollScheduler: drives every tracked job from `polling` to a settled state.

One recurring timer task serves all jobs. Each tick:
1. snapshots the jobs still in `polling`,
2. probes them concurrently,
3. applies each outcome to its job record,
4. dispatches callbacks for jobs that succeeded during this tick,
5. evicts settled jobs older than the retention window.

Ticks are single-flight: when the timer fires while the previous tick is still
running, the new tick is skipped. A job is never probed by two callers at the
same time (the early first poll and a tick share the in-flight set), so each
record is mutated by one coroutine at a time.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional, Set

from gentrack.core.clock import Clock, utc_now
from gentrack.core.config import JobTrackerConfig
from gentrack.core.interfaces.job_store import JobStorePort
from gentrack.core.interfaces.messaging import CallbackDispatcherPort
from gentrack.core.interfaces.status_prober import StatusProberPort
from gentrack.core.logging_config import correlation_id_var
from gentrack.core.models.job import Job, JobState
from gentrack.core.models.outcome import Failed, ProbeOutcome, StillProcessing, Succeeded
from gentrack.core.settings import logger

TIMEOUT_REASON = "Polling timeout - max attempts reached"


@dataclass
class TickReport:
    """What a single tick did; returned for logging and tests."""

    tick: int
    probed: List[str] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    dispatched: List[str] = field(default_factory=list)
    evicted: List[str] = field(default_factory=list)


class PollScheduler:
    """Owns the recurring poll timer and the per-job state machine.

    Attributes:
        config: Immutable polling/callback policy
    """

    def __init__(
        self,
        store: JobStorePort,
        prober: StatusProberPort,
        dispatcher: CallbackDispatcherPort,
        config: JobTrackerConfig,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._prober = prober
        self._dispatcher = dispatcher
        self.config = config
        self._clock = clock

        self._timer_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._in_flight: Set[str] = set()
        self._tick_running = False
        self._tick_count = 0
        self._stopped = False

    # ---------------- Lifecycle -----------------
    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    def start(self) -> None:
        self._stopped = False
        self.ensure_running()

    def ensure_running(self) -> None:
        """Start the recurring timer unless it is already running or stopped."""
        if self._stopped or self.is_running:
            return
        logger.info(
            f"[scheduler:start] auto-poll every {self.config.poll_interval}s "
            f"max_attempts={self.config.max_poll_attempts}"
        )
        self._timer_task = asyncio.create_task(self._run_timer())

    async def stop(self) -> None:
        self._stopped = True
        pending = list(self._tasks)
        if self._timer_task is not None:
            pending.append(self._timer_task)
            self._timer_task = None
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("[scheduler:stop] poll timer stopped")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"[scheduler:tick] background task failed error={exc!r}")

    async def _run_timer(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.config.poll_interval)
            # Spawned rather than awaited: a slow tick must not delay the timer,
            # the next firing is coalesced by the single-flight guard instead.
            self._spawn(self.tick())

    # ---------------- Tick -----------------
    async def tick(self) -> Optional[TickReport]:
        """Run one poll round; returns None when skipped because a tick is in flight."""
        if self._tick_running:
            logger.warning("[scheduler:tick] previous tick still running; skipping")
            return None
        self._tick_running = True
        self._tick_count += 1
        report = TickReport(tick=self._tick_count)
        token = correlation_id_var.set(f"tick-{report.tick}")
        try:
            await self._poll_round(report)
            await self._dispatch_all(report)
            report.evicted = await self._store.evict_settled_older_than(
                timedelta(seconds=self.config.retention)
            )
            for job_id in report.evicted:
                logger.info(f"[scheduler:evict] cleaned up old job job_id={job_id}")
            return report
        finally:
            self._tick_running = False
            correlation_id_var.reset(token)

    async def _poll_round(self, report: TickReport) -> None:
        jobs = await self._store.list_all()
        # No await between the filter and claiming the ids.
        pending = [
            j for j in jobs if j.state == JobState.polling and j.id not in self._in_flight
        ]
        if not pending:
            return
        self._in_flight.update(j.id for j in pending)
        report.probed = [j.id for j in pending]
        logger.info(f"[scheduler:tick] polling {len(pending)} pending job(s)")

        try:
            outcomes = await asyncio.gather(*(self._probe(j.id) for j in pending))
            for job, outcome in zip(pending, outcomes):
                updated = await self._apply(job.id, outcome, count_attempt=True)
                if updated is None:
                    continue
                if updated.state == JobState.succeeded:
                    report.succeeded.append(updated.id)
                elif updated.state == JobState.failed:
                    report.failed.append(updated.id)
        finally:
            self._in_flight.difference_update(report.probed)

    async def _dispatch_all(self, report: TickReport) -> None:
        if not report.succeeded:
            return
        jobs = [await self._store.get(job_id) for job_id in report.succeeded]
        results = await asyncio.gather(
            *(self._dispatch(job) for job in jobs if job is not None)
        )
        report.dispatched = [job_id for job_id in results if job_id]

    # ---------------- Early first poll -----------------
    def schedule_first_poll(self, job_id: str) -> None:
        if self._stopped:
            return
        self._spawn(self._first_poll(job_id))

    async def _first_poll(self, job_id: str) -> None:
        await asyncio.sleep(self.config.first_poll_delay)
        if job_id in self._in_flight:
            logger.debug(f"[scheduler:first-poll] already in flight job_id={job_id}")
            return
        self._in_flight.add(job_id)
        try:
            job = await self._store.get(job_id)
            if job is None or job.state != JobState.polling:
                return
            outcome = await self._probe(job_id)
            # A non-terminal early probe does not consume one of the tick attempts.
            updated = await self._apply(job_id, outcome, count_attempt=False)
        finally:
            self._in_flight.discard(job_id)
        if updated is not None and updated.state == JobState.succeeded:
            await self._dispatch(updated)

    # ---------------- Per-job state machine -----------------
    async def _probe(self, job_id: str) -> ProbeOutcome:
        try:
            return await self._prober.probe(job_id)
        except Exception as exc:
            logger.error(f"[scheduler:probe] prober raised job_id={job_id} error={exc!r}")
            return StillProcessing(transient_error=str(exc) or type(exc).__name__)

    async def _apply(
        self, job_id: str, outcome: ProbeOutcome, count_attempt: bool
    ) -> Optional[Job]:
        """Apply one probe outcome; return the job only if it settled just now."""
        job = await self._store.get(job_id)
        if job is None or job.is_settled():
            return None

        now = self._clock()
        if isinstance(outcome, Succeeded):
            job.mark_succeeded(outcome.artifacts, now)
            if job.results:
                # Claimed in the same write as the transition: the only dispatch.
                job.callback_dispatched_at = now
                logger.info(
                    f"[job:succeeded] job_id={job_id} images={len(job.results)}"
                )
            else:
                logger.error(
                    f"[job:succeeded] provider reported success without images job_id={job_id}; no callback will be sent"
                )
        elif isinstance(outcome, Failed):
            job.mark_failed(outcome.reason, now, cancelled=outcome.cancelled)
            logger.error(f"[job:failed] job_id={job_id} reason={outcome.reason}")
        else:
            if not count_attempt:
                return None
            job.poll_attempts += 1
            logger.debug(
                f"[job:poll] job_id={job_id} state={outcome.provider_state} "
                f"poll=#{job.poll_attempts} transient_error={outcome.transient_error}"
            )
            if job.poll_attempts >= self.config.max_poll_attempts:
                job.mark_failed(TIMEOUT_REASON, now)
                logger.error(
                    f"[job:timeout] job_id={job_id} timed out after {job.poll_attempts} attempts"
                )

        try:
            await self._store.update(job)
        except KeyError:
            logger.warning(f"[job:update] job vanished before update job_id={job_id}")
            return None
        return job if job.is_settled() else None

    async def _dispatch(self, job: Job) -> Optional[str]:
        if job.state != JobState.succeeded or not job.results:
            return None
        try:
            await self._dispatcher.dispatch(job)
        except Exception as exc:
            logger.error(f"[callback:error] dispatcher raised job_id={job.id} error={exc!r}")
        return job.id
