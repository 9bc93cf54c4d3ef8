"""Timeout and retry utilities for camera operations."""

from __future__ import annotations

import functools
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Any, Callable, Optional, TypeVar

from exceptions import DeviceUnavailableError
from log_config.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def run_with_timeout(
    func: Callable[..., T],
    timeout_seconds: float,
    error_message: str = "Operation timed out",
    *args: Any,
    on_late_result: Optional[Callable[[T], None]] = None,
    **kwargs: Any,
) -> T:
    """Run function with timeout, raise DeviceUnavailableError if exceeded.

    Args:
        func: Function to run
        timeout_seconds: Timeout in seconds
        error_message: Error message if timeout occurs
        *args: Positional arguments for func
        on_late_result: Called with the result if func finishes after the
            timeout already fired, so late-acquired handles can be released
        **kwargs: Keyword arguments for func

    Returns:
        Result of func

    Raises:
        DeviceUnavailableError: If operation times out
        Exception: Any exception raised by func
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(func, *args, **kwargs)
    try:
        return future.result(timeout=timeout_seconds)
    except FutureTimeoutError:
        logger.error(f"{error_message} after {timeout_seconds}s")
        if on_late_result is not None:
            future.add_done_callback(functools.partial(_discard_late_result, on_late_result))
        raise DeviceUnavailableError(f"{error_message} after {timeout_seconds}s")
    finally:
        # A hung driver call cannot be interrupted; don't block on it here
        executor.shutdown(wait=False)


def _discard_late_result(cleanup: Callable[[Any], None], future: Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    logger.warning("Releasing result of an operation that finished after its timeout")
    try:
        cleanup(future.result())
    except Exception as e:
        logger.error(f"Cleanup of late result failed: {e}")


def exponential_backoff(attempt: int, base_delay: float = 0.5, max_delay: float = 5.0) -> float:
    """Calculate exponential backoff delay.

    Args:
        attempt: Attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds

    Returns:
        Delay in seconds
    """
    delay = base_delay * (2**attempt)
    return min(delay, max_delay)


class RetryPolicy:
    """Configurable retry policy for camera operations."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 5.0,
        retry_on: tuple[type[Exception], ...] = (DeviceUnavailableError,),
    ):
        """Initialize retry policy.

        Args:
            max_attempts: Maximum number of attempts (including first)
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            retry_on: Tuple of exception types to retry on
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.retry_on = retry_on

    def should_retry(self, attempt: int, exception: Exception) -> bool:
        """Check if should retry after exception.

        Args:
            attempt: Current attempt number (0-indexed)
            exception: Exception that occurred

        Returns:
            True if should retry
        """
        if attempt + 1 >= self.max_attempts:
            return False

        return isinstance(exception, self.retry_on)

    def get_delay(self, attempt: int) -> float:
        return exponential_backoff(attempt, self.base_delay, self.max_delay)


def call_with_retry(func: Callable[..., T], policy: RetryPolicy, *args: Any, **kwargs: Any) -> T:
    """Call ``func`` until it succeeds or ``policy`` says to stop.

    Raises:
        The last exception raised by func
    """
    for attempt in range(policy.max_attempts):
        try:
            if attempt > 0:
                logger.info(f"Retrying {func.__name__} (attempt {attempt + 1}/{policy.max_attempts})")
            return func(*args, **kwargs)
        except Exception as e:
            logger.warning(f"{func.__name__} failed on attempt {attempt + 1}/{policy.max_attempts}: {e}")
            if not policy.should_retry(attempt, e):
                raise
            delay = policy.get_delay(attempt)
            logger.debug(f"Waiting {delay:.2f}s before retry")
            time.sleep(delay)

    raise RuntimeError(f"{func.__name__}: retry policy allowed no attempts")


__all__ = [
    "run_with_timeout",
    "exponential_backoff",
    "RetryPolicy",
    "call_with_retry",
]
