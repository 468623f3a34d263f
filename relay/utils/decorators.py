"""Common decorators for the relay."""

import asyncio
import functools
import time
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from loguru import logger

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def retry_async(
    max_retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[BaseException], ...] = (ConnectionError, TimeoutError, OSError),
) -> Callable[[F], F]:
    """
    Decorator to retry async functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (total attempts = max_retries + 1)
        delay: Initial delay between retries
        backoff: Backoff multiplier
        exceptions: Tuple of exceptions to catch and retry (default: network/IO errors)

    Example:
        @retry_async(max_retries=2, delay=2.0, exceptions=(DriverError,))
        async def send():
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            last_exception: Optional[BaseException] = None
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < max_retries:
                        logger.warning(
                            f"{func.__name__} failed "
                            f"(attempt {attempt + 1}/{max_retries + 1}): {e}. "
                            f"Retrying in {current_delay:.1f}s..."
                        )
                        await asyncio.sleep(current_delay)
                        current_delay *= backoff
                    else:
                        logger.error(
                            f"{func.__name__} failed after {max_retries + 1} attempts: {e}"
                        )

            if last_exception:
                raise last_exception
            raise RuntimeError("Unexpected error in retry logic")

        return wrapper  # type: ignore[return-value]

    return decorator


def timed_async(func: F) -> F:
    """
    Decorator to measure and log execution time of async functions.

    Example:
        @timed_async
        async def slow_operation():
            ...
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = time.monotonic()
        try:
            result = await func(*args, **kwargs)
            logger.debug(f"{func.__name__} completed in {time.monotonic() - start:.3f}s")
            return result
        except Exception:
            logger.debug(f"{func.__name__} failed after {time.monotonic() - start:.3f}s")
            raise

    return wrapper  # type: ignore[return-value]
