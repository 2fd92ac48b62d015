"""Bounded retries for calls that can fail before any side effect happened."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    logger: Any = None,
    operation_name: str = "operation",
) -> T:
    """Run ``operation`` with linear backoff until it succeeds or attempts run out.

    Only exceptions in ``retry_on`` are retried; anything else, and the last
    retryable failure, propagate unchanged.
    """

    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as exc:
            if attempt == attempts:
                raise
            delay = base_delay * attempt
            if logger is not None:
                logger.warning(
                    "retrying_operation",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=attempts,
                    delay=delay,
                    error_type=exc.__class__.__name__,
                    error=str(exc),
                )
            await asyncio.sleep(delay)
    raise RuntimeError(f"{operation_name} failed after {attempts} attempts")


__all__ = ["retry_async"]
