import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loggers import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def call_with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    delay: float = 2,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    label: str = "operation",
) -> T:
    """
    Await `operation` up to `max_retries` times.

    Only exceptions listed in `retry_on` are retried; the delay between attempts
    grows linearly (`delay * attempt_number`). The last exception is re-raised
    once all attempts are used up.

    Example:
        await call_with_retries(
            partial(client.complete, prompt), retry_on=(APIError,), label="completion"
        )
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    attempt = 1
    while True:
        try:
            return await operation()
        except retry_on as e:
            logger.warning(
                "[RETRY] %s attempt %s/%s failed: %s", label, attempt, max_retries, e
            )
            if attempt >= max_retries:
                raise
            await asyncio.sleep(delay * attempt)
            attempt += 1
