"""Retry logic for idempotent remote reads."""

import asyncio
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, cast

from loguru import logger

from admin_console.store.base import StoreError

T = TypeVar("T")
AsyncFunc = Callable[..., Awaitable[T]]


def is_transient(error: BaseException) -> bool:
    """Default retry predicate: timeouts and transient store errors."""
    if isinstance(error, asyncio.TimeoutError):
        return True
    if isinstance(error, StoreError):
        return error.transient
    return False


def with_exponential_backoff(
    max_retries: int = 3,
    initial_backoff: float = 0.5,
    max_backoff: float = 8.0,
    backoff_factor: float = 2.0,
    should_retry: Optional[Callable[[BaseException], bool]] = None,
) -> Callable[[AsyncFunc[T]], AsyncFunc[T]]:
    """
    Decorator for retrying async functions with exponential backoff.

    Only apply this to reads. Writes are never retried automatically since a
    repeated delete or toggle could apply twice.

    Args:
        max_retries: Maximum number of retry attempts
        initial_backoff: Initial backoff time in seconds
        max_backoff: Maximum backoff time in seconds
        backoff_factor: Multiplier for backoff time between retries
        should_retry: Predicate deciding whether an error is retryable

    Returns:
        Decorator function
    """
    retryable = should_retry or is_transient

    def decorator(func: AsyncFunc[T]) -> AsyncFunc[T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = 0
            backoff = initial_backoff

            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not retryable(e):
                        raise

                    if retries >= max_retries:
                        logger.error(f"Max retries ({max_retries}) exceeded: {e!r}")
                        raise

                    logger.warning(
                        f"Transient error: {e!r}. "
                        f"Retrying in {backoff:.2f}s ({retries + 1}/{max_retries})"
                    )
                    await asyncio.sleep(backoff)
                    retries += 1
                    backoff = min(backoff * backoff_factor, max_backoff)

        return cast(AsyncFunc[T], wrapper)
    return decorator
