"""Retry logic for upstream calls using tenacity."""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

F = TypeVar("F", bound=Callable[..., Any])

RETRYABLE_ERRORS = (TimeoutError, ConnectionError, httpx.TransportError)


def with_upstream_retry(
    service_name: str,
    max_retries: int = 3,
    wrap_error: Callable[[str], Exception] | None = None,
) -> Callable[[F], F]:
    """Decorator adding retries on transport failures to an async upstream call.

    Args:
        service_name: Name of the upstream service for log messages.
        max_retries: Maximum number of attempts.
        wrap_error: Builds the exception raised once retries are exhausted.

    Returns:
        Decorated function with retry logic.
    """

    def decorator(func: F) -> F:
        @retry(
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            stop=stop_after_attempt(max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                f"{service_name} attempt {retry_state.attempt_number}: "
                f"{retry_state.outcome.exception() if retry_state.outcome else 'Unknown error'}",
            ),
        )
        async def attempt(*args: Any, **kwargs: Any) -> Any:
            return await func(*args, **kwargs)

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await attempt(*args, **kwargs)
            except RETRYABLE_ERRORS as e:
                logger.error(f"{service_name} unreachable after {max_retries} attempts: {e}")
                if wrap_error is None:
                    raise
                raise wrap_error(f"{service_name} request failed: {e}") from e

        return wrapper  # type: ignore[return-value]

    return decorator
