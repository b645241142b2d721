"""
Retry decorator with exponential backoff.

Used by adapters and auth to handle transient API failures.
Each retry re-runs the whole decorated call; nothing is resumed midway.
A retryable error that used up its budget is marked retries_exhausted,
so nested decorators (token refresh inside a document call) spend one
budget between them, not one each.
"""

import asyncio
from functools import wraps
from typing import Awaitable, Callable, ParamSpec, TypeVar

import httpx

import config
from logging_config import logger, log_retry
from models import DocsError, TransientError

T = TypeVar("T")
P = ParamSpec("P")


# Exceptions that should trigger retry (httpx.TimeoutException is a TransportError)
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
)

# HTTP status codes that should trigger retry
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({
    429,  # Rate limited
    500,  # Internal server error
    502,  # Bad gateway
    503,  # Service unavailable
    504,  # Gateway timeout
})


def compute_delay_ms(attempt: int, delay_ms: int, backoff_multiplier: float) -> int:
    """Wait before retry number `attempt + 1` (attempt is 0-based)."""
    return int(delay_ms * (backoff_multiplier ** attempt))


def _should_retry(exception: Exception) -> bool:
    """Determine if an exception is retryable."""
    if isinstance(exception, DocsError):
        # Already retried to exhaustion by an inner with_retry
        return exception.retryable and not exception.details.get("retries_exhausted", False)
    return isinstance(exception, RETRYABLE_EXCEPTIONS)


def _convert_to_docs_error(exception: Exception) -> DocsError:
    """Convert an exception to a DocsError if not already one."""
    if isinstance(exception, DocsError):
        return exception

    if isinstance(exception, httpx.TimeoutException):
        return TransientError(f"Request timed out: {exception}")
    if isinstance(exception, httpx.ConnectError):
        return TransientError(
            f"Failed to connect to Google API. Check network connectivity: {exception}"
        )
    if isinstance(exception, RETRYABLE_EXCEPTIONS):
        return TransientError(f"Network error: {exception}")

    return DocsError(str(exception))


def with_retry(
    max_attempts: int = config.RETRY_MAX_ATTEMPTS,
    delay_ms: int = config.RETRY_DELAY_MS,
    backoff_multiplier: float = config.RETRY_BACKOFF_MULTIPLIER,
    convert_errors: bool = True,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Retry decorator with exponential backoff for coroutine functions.

    Args:
        max_attempts: Total attempts, including the first
        delay_ms: Initial delay in milliseconds
        backoff_multiplier: Multiplier for exponential backoff
        convert_errors: Convert exceptions to DocsError on final failure

    Returns:
        Decorated coroutine function with retry logic

    Example:
        @with_retry(max_attempts=3, delay_ms=1000)
        async def fetch_document(document_id: str) -> DocumentModel:
            ...
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            last_exception: Exception | None = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    last_exception = e

                    if not _should_retry(e) or attempt == max_attempts - 1:
                        logger.error(
                            f"{func.__name__} failed after {attempt + 1} attempts: {e}"
                        )
                        error = _convert_to_docs_error(e) if convert_errors else e
                        if isinstance(error, DocsError) and error.retryable:
                            error.details["retries_exhausted"] = True
                        if error is e:
                            raise
                        raise error from e

                    wait_ms = compute_delay_ms(attempt, delay_ms, backoff_multiplier)
                    log_retry(func.__name__, attempt + 1, max_attempts, wait_ms, str(e))
                    await asyncio.sleep(wait_ms / 1000)

            # Only reachable with max_attempts < 1
            assert last_exception is not None
            if convert_errors:
                raise _convert_to_docs_error(last_exception) from last_exception
            raise last_exception

        return wrapper

    return decorator
