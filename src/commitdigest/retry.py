"""
Retry-with-backoff around a single remote model call.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .constants import RETRYABLE_ERROR_MARKERS
from .exceptions import ProviderError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Decide whether a failed remote call is worth retrying.

    Timeouts, HTTP 429 and messages mentioning rate limits, quotas or an
    overloaded backend are retryable; anything else is not.
    """
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return True

    for attr in ("status_code", "status", "code"):
        if getattr(error, attr, None) == 429:
            return True

    message = str(error).lower()
    return any(marker in message for marker in RETRYABLE_ERROR_MARKERS)


async def with_retry(
    call: Callable[[], Awaitable[T]],
    max_attempts: int,
    base_delay: float,
    is_retryable: Callable[[BaseException], bool] = is_rate_limit_error,
    linear: bool = False,
    jitter: float = 0.0,
    operation: str = "API call",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``call`` until it succeeds, retrying only retryable failures.

    The wait before attempt ``n + 1`` is ``base_delay`` (or ``base_delay * n``
    when ``linear``) plus up to ``jitter`` random seconds. Nothing outside
    ``call`` is touched between attempts, so conversation state is preserved.

    Args:
        call: Zero-argument coroutine factory performing one attempt
        max_attempts: Total attempts, including the first one
        base_delay: Delay in seconds between attempts
        is_retryable: Predicate classifying a failure
        linear: Scale the delay with the attempt number
        jitter: Upper bound of random seconds added to each delay
        operation: Label used in log messages
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        The result of the first successful attempt

    Raises:
        ProviderError: If a failure is not retryable
        RetryExhaustedError: If every attempt failed with a retryable error
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return await call()
        except Exception as e:
            if not is_retryable(e):
                raise ProviderError(f"{operation} failed: {e}") from e

            if attempt == max_attempts:
                raise RetryExhaustedError(
                    f"Failed {operation} after {max_attempts} attempts. Last error: {e}",
                    last_error=e,
                    attempts=max_attempts,
                ) from e

            delay = base_delay * attempt if linear else base_delay
            if jitter:
                delay += random.uniform(0, jitter)
            logger.warning(
                "Retryable error during %s (attempt %d/%d): %s. Waiting %.1fs, "
                "conversation state is preserved",
                operation,
                attempt,
                max_attempts,
                e,
                delay,
            )
            await sleep(delay)
