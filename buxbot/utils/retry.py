"""
Retry with exponential backoff.

Every retried external call in the bot goes through retry_with_backoff so the
backoff state and attempt accounting live in one place.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff: delay = min(base_delay * 2**n, max_delay)."""

    max_attempts: int = 3
    base_delay: float = 2.0
    max_delay: float = 8.0

    def delay_for(self, retry_number: int) -> float:
        """Delay before retry number `retry_number` (0 for the first retry)."""
        return min(self.base_delay * (2 ** retry_number), self.max_delay)


def is_retryable(error: BaseException) -> bool:
    """Default predicate: honour a `retryable` flag on the exception."""
    return bool(getattr(error, "retryable", False))


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    should_retry: Callable[[BaseException], bool] = is_retryable,
    description: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """
    Run `operation`, retrying retryable failures with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Attempt limit and backoff parameters
        should_retry: Predicate deciding whether an exception is retryable
        description: Label used in log messages
        sleep: Awaitable sleep function, defaults to asyncio.sleep

    Returns:
        The first successful result of `operation`

    Raises:
        The last exception once attempts are exhausted, or immediately for
        non-retryable exceptions.
    """
    if policy.max_attempts < 1:
        raise ValueError("RetryPolicy.max_attempts must be at least 1")
    sleep = sleep or asyncio.sleep

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if not should_retry(e):
                raise
            if attempt >= policy.max_attempts:
                logger.warning(f"{description} failed after {attempt} attempts: {e}")
                raise
            delay = policy.delay_for(attempt - 1)
            logger.info(
                f"{description} attempt {attempt}/{policy.max_attempts} failed: {e}. "
                f"Retrying in {delay:.1f}s"
            )
            await sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{description} exhausted retries without a result")
