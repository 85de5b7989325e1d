from typing import Any, Awaitable, Callable, Protocol, Sequence, Type


class RetryPort(Protocol):
    """Retries an async operation with backoff.

    Only exceptions listed in `retry_on` are retried; anything else propagates
    on the first raise. After the last attempt the final exception propagates.
    """

    async def execute(
        self,
        func: Callable[[], Awaitable[Any]],
        retry_on: Sequence[Type[BaseException]] = (Exception,),
    ) -> Any:  # pragma: no cover - protocol
        ...
