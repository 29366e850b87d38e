"""Bounded retry helper with fixed or exponential backoff."""
import time
from typing import Any, Callable, Type, Tuple

from .exceptions import RetryableError
from .logger import get_logger

logger = get_logger()


def call_with_retry(
    func: Callable[..., Any],
    *args,
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff_factor: float = 1.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = (RetryableError,),
    **kwargs
) -> Any:
    """
    Call func, retrying on retryable exceptions.

    Args:
        func: Callable to invoke
        max_attempts: Total number of attempts (including the first one)
        delay: Wait before the first retry, in seconds
        backoff_factor: Multiplier applied to the wait after each retry (1.0 = fixed)
        retryable_exceptions: Tuple of exception types that trigger retry

    Raises:
        The last retryable exception once attempts are exhausted, or any
        non-retryable exception immediately.
    """
    name = getattr(func, "__name__", repr(func))

    for attempt in range(max_attempts):
        try:
            return func(*args, **kwargs)
        except retryable_exceptions as e:
            if attempt == max_attempts - 1:
                logger.error(f"Max attempts ({max_attempts}) exceeded for {name}: {e}")
                raise

            wait_time = delay * (backoff_factor ** attempt)
            logger.warning(
                f"Retry {attempt + 1}/{max_attempts - 1} for {name} "
                f"after {wait_time:.1f}s: {e}"
            )
            time.sleep(wait_time)

    raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
