"""
Retry strategies.

This module provides the simple retry mechanism used for calls to the
coordinating server, with a hook to stop early on errors that are not
worth retrying.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def simple_retry(
    func: Callable[[], T],
    max_attempts: int = 3,
    delay: float = 1.0,
    context: str = "operation",
    should_retry: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """
    Simple retry mechanism for basic operations.

    Args:
        func: Function to retry
        max_attempts: Maximum number of attempts
        delay: Delay between attempts in seconds
        context: Context description for error messages
        should_retry: Predicate deciding whether an exception is retryable;
            non-retryable exceptions are raised immediately

    Returns:
        Result from func if successful

    Raises:
        Exception: Last exception if all attempts fail
    """
    last_exception = None

    for attempt in range(max_attempts):
        try:
            result = func()
            if attempt > 0:
                logger.info(f"Operation '{context}' succeeded on attempt {attempt + 1}")
            return result
        except Exception as e:
            last_exception = e
            if should_retry is not None and not should_retry(e):
                logger.debug(f"Not retrying {context}: {e}")
                raise
            if attempt < max_attempts - 1:
                logger.debug(f"Attempt {attempt + 1} failed for {context}: {e}")
                time.sleep(delay)
            else:
                logger.error(f"All {max_attempts} attempts failed for {context}: {e}")

    raise last_exception or Exception(f"All attempts failed for {context}")
