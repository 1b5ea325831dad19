"""Retry with exponential backoff for callers that opt in.

Nothing in the repository or service layers calls this automatically; a
caller decides to retry based on ``BaseError.is_retryable()``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from datacore.core.config import settings
from datacore.core.exceptions import BaseError

__all__ = ["is_retryable_error", "retry_async"]

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def is_retryable_error(error: BaseException) -> bool:
    return isinstance(error, BaseError) and error.is_retryable()


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int | None = None,
    delay: float | None = None,
    backoff_factor: float | None = None,
    should_retry: Callable[[BaseException], bool] = is_retryable_error,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``fn()`` until it succeeds or attempts run out.

    Waits ``delay * backoff_factor ** (attempt - 1)`` seconds between
    attempts. The last failure, or the first one ``should_retry`` rejects,
    propagates unchanged. Defaults come from settings.
    """
    attempts = max_attempts if max_attempts is not None else settings.retry_max_attempts
    base_delay = delay if delay is not None else settings.retry_delay_seconds
    factor = backoff_factor if backoff_factor is not None else settings.retry_backoff_factor
    if attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as exc:
            if attempt == attempts or not should_retry(exc):
                raise
            wait = base_delay * (factor ** (attempt - 1))
            logger.info(
                "retry_scheduled",
                attempt=attempt,
                max_attempts=attempts,
                delay_seconds=wait,
                error=type(exc).__name__,
            )
            await sleep(wait)

    raise AssertionError("unreachable")  # pragma: no cover
