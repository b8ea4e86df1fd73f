"""
Backoff schedule shared by the HTTP client and the verification poll loop.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from nuki_bridge.actions.errors import TransportRetryable
from nuki_bridge.actions.verification_config import VerificationConfig

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


def delay_for_attempt(
    attempt: int, config: VerificationConfig | None = None
) -> float:
    """
    Return the backoff delay in milliseconds for a 0-based retry index.

    delay = min(initial * multiplier ** attempt, max_delay)
    """
    config = config or VerificationConfig()
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    delay = config.INITIAL_DELAY_MS * (config.BACKOFF_MULTIPLIER**attempt)
    return float(min(delay, config.MAX_DELAY_MS))


async def retry_async(
    operation: Callable[[int], Awaitable[T]],
    config: VerificationConfig | None = None,
    sleep: SleepFunc = asyncio.sleep,
) -> T:
    """
    Run ``operation`` until it succeeds, retrying only on TransportRetryable.

    ``operation`` receives the 0-based attempt index. At most
    ``MAX_RETRIES`` retries follow the first try; the last retryable error is
    re-raised once they are used up. Any other exception propagates at once.
    """
    config = config or VerificationConfig()
    attempt = 0

    while True:
        try:
            return await operation(attempt)
        except TransportRetryable:
            if attempt >= config.MAX_RETRIES:
                raise
        await sleep(delay_for_attempt(attempt, config) / 1000)
        attempt += 1
