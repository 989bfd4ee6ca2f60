"""
Bounded retry with exponential backoff for collaborator calls.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
Backoff = Callable[[int, BaseException], float]


def exponential_backoff(base_delay: float) -> Backoff:
    """
    Build a schedule of ``base_delay * 2**attempt`` seconds.

    An error carrying a ``retry_after`` hint raises the delay to at least
    that many seconds.
    """

    def schedule(attempt: int, error: BaseException) -> float:
        delay = base_delay * (2 ** attempt)
        retry_after: Optional[float] = getattr(error, "retry_after", None)
        if retry_after is not None:
            delay = max(delay, float(retry_after))
        return delay

    return schedule


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    is_retryable: Callable[[BaseException], bool],
    backoff: Backoff,
    max_retries: int = 3,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """
    Await ``operation`` until it succeeds or retries are exhausted.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        is_retryable: Decides whether an error warrants another attempt
        backoff: Maps (attempt index, error) to a delay in seconds
        max_retries: Retries allowed after the first attempt
        sleep: Awaitable delay function

    Returns:
        The operation's result

    Raises:
        The last error when it is not retryable or no retries remain
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e) or attempt >= max_retries:
                raise
            delay = backoff(attempt, e)
            logger.warning(
                f"{e}; retrying in {delay:.1f}s "
                f"(attempt {attempt + 1}/{max_retries + 1})"
            )
            await sleep(delay)
            attempt += 1
