"""Management API client."""

from .client import APIResponse, KontentClient, KontentClientFactory
from .exceptions import (
    KontentAPIError,
    KontentAuthenticationError,
    KontentNotFoundError,
    KontentPermissionError,
    KontentRateLimitError,
    KontentServerError,
    KontentValidationError,
)
from .rate_limiter import RateLimiter

__all__ = [
    'APIResponse',
    'KontentClient',
    'KontentClientFactory',
    'KontentAPIError',
    'KontentAuthenticationError',
    'KontentNotFoundError',
    'KontentPermissionError',
    'KontentRateLimitError',
    'KontentServerError',
    'KontentValidationError',
    'RateLimiter',
]
