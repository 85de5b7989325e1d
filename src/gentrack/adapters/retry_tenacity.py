from typing import Any, Awaitable, Callable, Sequence, Type

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gentrack.core.settings import logger


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    wait = state.next_action.sleep if state.next_action else 0
    logger.warning(
        f"[retry:wait] attempt={state.attempt_number} next_in={wait:.2f}s error={exc!r}"
    )


class TenacityRetryAdapter:
    """RetryPort on tenacity's AsyncRetrying with exponential backoff."""

    def __init__(
        self,
        attempts: int = 3,
        wait_initial: float = 0.5,
        wait_max: float = 4.0,
    ) -> None:
        self.attempts = attempts
        self.wait_initial = wait_initial
        self.wait_max = wait_max

    async def execute(
        self,
        func: Callable[[], Awaitable[Any]],
        retry_on: Sequence[Type[BaseException]] = (Exception,),
    ) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.wait_initial, max=self.wait_max),
            retry=retry_if_exception_type(tuple(retry_on)),
            before_sleep=_log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await func()
