"""Retry logic for optimistic profile writes

Read-modify-write sequences against the profile store fail with
ConflictError when another session wrote first. Engine functions are pure,
so the whole sequence can simply be run again:
1. Only ConflictError is retried
2. Exponential backoff with jitter between attempts
3. Gives up after max retries and re-raises the last conflict
"""

import asyncio
import random
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from fitplay.config import MAX_CONFLICT_RETRIES
from fitplay.exceptions import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar('T')

BASE_DELAY = 0.05  # seconds
MAX_DELAY = 1.0  # seconds
JITTER = 0.1  # 10% random jitter


def is_retryable_error(exc: Exception) -> bool:
    """Only write conflicts are worth retrying"""
    return isinstance(exc, ConflictError)


def calculate_backoff(attempt: int) -> float:
    """
    Exponential backoff delay with jitter

    Formula: delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY) +/- 10%

    Args:
        attempt: The retry attempt number (0-indexed)

    Returns:
        Delay in seconds
    """
    delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)
    jitter_amount = random.uniform(-JITTER * delay, JITTER * delay)
    return max(delay + jitter_amount, 0.0)


async def retry_on_conflict(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: Optional[int] = None,
    **kwargs: Any
) -> T:
    """
    Run an async read-modify-write, retrying on ConflictError

    Args:
        func: Async function performing the whole read-modify-write
        max_retries: Retry attempts after the first try (default: MAX_CONFLICT_RETRIES)
        *args, **kwargs: Arguments to pass to func

    Returns:
        Result from func

    Raises:
        ConflictError if all retries are exhausted; other errors immediately
    """
    if max_retries is None:
        max_retries = MAX_CONFLICT_RETRIES

    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            if not is_retryable_error(e):
                raise

            if attempt == max_retries:
                logger.error(
                    f"[RETRY] All {max_retries} retries exhausted for {func.__name__}"
                )
                raise

            backoff = calculate_backoff(attempt)
            logger.info(
                f"[RETRY] Attempt {attempt + 1}/{max_retries} for {func.__name__} "
                f"after {backoff:.2f}s (error: {type(e).__name__})"
            )
            await asyncio.sleep(backoff)

    raise RuntimeError("Retry logic failed unexpectedly")

