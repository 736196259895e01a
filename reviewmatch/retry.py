"""
Retry logic with exponential backoff for the external review feed.

The feed is the only component that talks to the network; rate limiting
and server hiccups are retried here so a single slow page does not cost a
whole location its verification run.
"""

import time
import functools
from typing import Callable, Type, Tuple, Optional

import requests


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


# Retry on server errors, timeouts and rate limiting
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Optional callback function(attempt, exception, delay)

    Example:
        @exponential_backoff(max_retries=3, exceptions=(TransientFeedError,))
        def fetch_page(url):
            return session.get(url)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {e}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)
                    if current_delay > 0:
                        time.sleep(current_delay)
                    delay *= exponential_base

            # range() always runs at least once; kept for type checkers
            raise RetryError("Retry loop exited without a result")

        return wrapper
    return decorator


def should_retry_http_status(status_code: int) -> bool:
    """
    Check if HTTP status code indicates a retryable error.

    Args:
        status_code: HTTP status code

    Returns:
        True if should retry
    """
    return status_code in RETRYABLE_STATUS_CODES


def is_transient_error(exception: Exception) -> bool:
    """
    Determine if a requests failure is likely transient.

    Timeouts, dropped connections and retryable HTTP statuses are transient;
    everything else (auth failures, 404s, malformed URLs) is not.
    """
    if isinstance(exception, (requests.exceptions.Timeout, requests.exceptions.ConnectionError)):
        return True
    if isinstance(exception, requests.exceptions.HTTPError):
        response = exception.response
        return response is not None and should_retry_http_status(response.status_code)
    return False
