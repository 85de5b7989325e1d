"""CallbackDispatcher: notifies the messaging platform once a job succeeded.

Two calls, strictly in sequence:
1. store the first result location on the contact,
2. wait `delay` seconds (counted from step 1's response, whatever it was),
3. trigger the follow-up flow for the same contact.

A failing step is logged and never retried; it does not stop the other step
and never touches the job record.
"""

import asyncio
from typing import Awaitable, Callable, List

from gentrack.core.interfaces.messaging import MessagingClientPort
from gentrack.core.models.callback import CallbackResult
from gentrack.core.models.job import Job
from gentrack.core.settings import logger


class CallbackDispatcher:
    def __init__(
        self,
        client: MessagingClientPort,
        delay: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self.delay = delay
        self._sleep = sleep

    async def dispatch(self, job: Job) -> List[CallbackResult]:
        if not job.results:
            logger.error(f"[callback:skip] no images to send job_id={job.id}")
            return []

        contact_id = job.owner.contact_id
        image_url = job.results[0]

        logger.info(f"[callback:record] saving image to contact field job_id={job.id} contact_id={contact_id}")
        first = await self._run_step(job, self._client.record_result(contact_id, image_url))

        await self._sleep(self.delay)

        logger.info(f"[callback:flow] triggering flow job_id={job.id} contact_id={contact_id}")
        second = await self._run_step(job, self._client.trigger_flow(contact_id))

        return [r for r in (first, second) if r is not None]

    async def _run_step(
        self, job: Job, call: Awaitable[CallbackResult]
    ) -> CallbackResult | None:
        try:
            result = await call
        except Exception as exc:
            logger.error(f"[callback:error] job_id={job.id} error={exc!r}")
            return None

        if result.ok:
            logger.info(f"[callback:{result.step}] success job_id={job.id} status={result.status}")
        else:
            logger.error(
                f"[callback:{result.step}] failed job_id={job.id} status={result.status} detail={result.detail}"
            )
        return result
