"""Retry policy for transient Management API failures using tenacity."""

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from loguru import logger

from .exceptions import TRANSIENT_ERRORS, KontentRateLimitError


class wait_retry_after:
    """Honor ``Retry-After`` of rate limit errors, else back off exponentially."""

    def __init__(self, min_wait: float, max_wait: float):
        self.max_wait = max_wait
        self.fallback = wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait)

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        if isinstance(error, KontentRateLimitError) and error.retry_after:
            return min(float(error.retry_after), self.max_wait)
        return self.fallback(retry_state)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f'Transient API error (attempt {retry_state.attempt_number}), '
        f'retrying: {error}'
    )


def transient_retrying(
    max_attempts: int = 5, min_wait: float = 1.0, max_wait: float = 60.0
) -> AsyncRetrying:
    """Build the retry controller used around every import request.

    Only rate limit and server errors are retried. Once the attempts are
    exhausted the last error is re-raised unchanged.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Initial backoff in seconds
        max_wait: Maximum backoff in seconds

    Returns:
        Configured tenacity controller
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_retry_after(min_wait, max_wait),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        before_sleep=_log_retry,
        reraise=True,
    )
