"""
Retry with exponential backoff for transient network errors.

Drive calls can fail temporarily (HTTP 429 rate limits, 5xx overload,
connection resets). Those are retried with a doubling delay, capped at
max_delay, and multiplied by a random jitter factor in [0.5, 1.5) so that
parallel invocations don't retry in lockstep.

Token exchange, classifier and commit calls are deliberately NOT wrapped:
their retry policy belongs to the caller (a failed classification becomes a
manual review, a failed commit is shown to the human).

Usage:
    from utils.retry import retry_on_transient_error

    @retry_on_transient_error(is_retryable=lambda e: isinstance(e, ConnectionError))
    def call_api():
        ...
"""

import random
import time
from functools import wraps
from typing import Callable, Optional


# HTTP status codes that indicate a transient server-side problem
TRANSIENT_HTTP_STATUS_CODES = {429, 500, 502, 503, 504}

# Network exception types that are typically transient.
# socket.timeout is an OSError subclass on every supported Python.
TRANSIENT_NETWORK_EXCEPTIONS = (ConnectionError, TimeoutError, OSError)


def is_transient_network_error(exc: Exception) -> bool:
    """Check if an exception looks like a transient network error."""
    return isinstance(exc, TRANSIENT_NETWORK_EXCEPTIONS)


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry number `attempt` (0-indexed), jitter included."""
    delay = min(base_delay * (2 ** attempt), max_delay)
    return delay * (0.5 + random.random())


def retry_on_transient_error(
    is_retryable: Callable[[Exception], bool],
    max_retries: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    on_retry: Optional[Callable[[Exception, int, float], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
):
    """Decorator that retries a function on transient errors.

    Args:
        is_retryable: Returns True if the exception is transient
        max_retries: Retries after the first attempt (total = max_retries + 1)
        base_delay: Delay before the first retry, doubled for each retry
        max_delay: Upper bound for the un-jittered delay
        on_retry: Called as on_retry(exc, attempt, delay) before sleeping
        sleep: Sleep function (tests pass a no-op)

    Raises:
        The last exception once retries are exhausted, or immediately if
        the exception is not retryable.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as exc:
                    if not is_retryable(exc) or attempt == max_retries:
                        raise
                    delay = backoff_delay(attempt, base_delay, max_delay)
                    if on_retry:
                        on_retry(exc, attempt + 1, delay)
                    sleep(delay)

        return wrapper
    return decorator
