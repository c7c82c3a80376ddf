"""Retry policy for establishing device connections.

Only connection establishment is retried. Lock, load and commit failures are
terminal for an operation and are returned to the caller, which owns retry
scheduling.
"""
import asyncio
import logging
from functools import wraps
from typing import Any, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Network exceptions worth another connection attempt
RETRYABLE_EXCEPTIONS = (
    ConnectionRefusedError,
    ConnectionResetError,
    TimeoutError,
    OSError,
    EOFError,
)


def with_retry(
    attempts: Callable[[Any], int],
    step: float = 1,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
) -> Callable:
    """Decorator factory retrying a method with a linearly growing pause.

    The pause grows by ``step`` seconds after every failed attempt (1s, 2s,
    3s, ...).

    Args:
        attempts: Called with ``self`` to get the number of attempts, so the
            count can come from per-instance settings
        step: Pause increment between attempts (seconds)
        exceptions: Tuple of exception types to retry on
    """
    def policy(instance: Any) -> dict:
        return dict(
            stop=stop_after_attempt(max(1, attempts(instance))),
            wait=wait_incrementing(start=step, increment=step),
            retry=retry_if_exception_type(exceptions),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def async_wrapper(self, *args: Any, **kwargs: Any) -> T:
            async for attempt in AsyncRetrying(**policy(self)):
                with attempt:
                    return await func(self, *args, **kwargs)  # type: ignore[misc]

        @wraps(func)
        def sync_wrapper(self, *args: Any, **kwargs: Any) -> T:
            for attempt in Retrying(**policy(self)):
                with attempt:
                    return func(self, *args, **kwargs)

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper

    return decorator
