from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import httpx

P = ParamSpec("P")
R = TypeVar("R")

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

logger = logging.getLogger(__name__)


def _is_retryable(exc: httpx.RequestError | httpx.HTTPStatusError) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ReadTimeout))


def retry_with_backoff(
    retries: int = 3,
    delay: float = 1.0,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Retry async provider calls with exponential backoff for transient failures.

    Non-retryable errors, and retryable ones once ``retries`` is exhausted,
    are re-raised unchanged so the adapter can fall back to its RSS path.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            current_delay = delay
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except (httpx.RequestError, httpx.HTTPStatusError) as exc:
                    attempt += 1
                    if attempt > retries or not _is_retryable(exc):
                        raise
                    logger.warning(
                        "Transient failure in %s (attempt %d/%d): %s; retrying in %.1fs",
                        func.__qualname__,
                        attempt,
                        retries,
                        exc,
                        current_delay,
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= 2

        return wrapper

    return decorator
