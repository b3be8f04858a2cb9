"""Exponential-backoff retry for coroutine functions (Groq calls)."""
from __future__ import annotations

import asyncio
import functools
import logging
import random
from typing import Any, Awaitable, Callable, Tuple, Type

logger = logging.getLogger(__name__)

AsyncFn = Callable[..., Awaitable[Any]]


def backoff_delay(
    attempt: int,
    *,
    base_delay: float,
    max_delay: float,
    backoff_factor: float,
    jitter: bool,
) -> float:
    """Seconds to wait after failed *attempt* (1-based)."""
    delay = min(base_delay * backoff_factor ** (attempt - 1), max_delay)
    if jitter:
        delay *= random.uniform(0.5, 1.5)
    return delay


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable[[AsyncFn], AsyncFn]:
    """Re-await the wrapped coroutine on *retryable* errors; the last error propagates.

    Waiting uses ``asyncio.sleep`` so other job tabs keep running meanwhile.
    """

    def decorator(fn: AsyncFn) -> AsyncFn:
        name = fn.__qualname__

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 1
            while True:
                try:
                    return await fn(*args, **kwargs)
                except retryable as exc:
                    if attempt >= max_attempts:
                        logger.error("%s gave up after %d attempt(s): %s", name, attempt, exc)
                        raise
                    delay = backoff_delay(
                        attempt,
                        base_delay=base_delay,
                        max_delay=max_delay,
                        backoff_factor=backoff_factor,
                        jitter=jitter,
                    )
                    logger.warning(
                        "%s failed on attempt %d/%d (%s); next try in %.1fs",
                        name, attempt, max_attempts, exc, delay,
                    )
                    await asyncio.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
