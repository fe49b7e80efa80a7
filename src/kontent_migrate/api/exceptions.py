"""Management API exceptions."""

from typing import Optional


class KontentAPIError(Exception):
    """Base exception for Management API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
    ):
        """Initialize Management API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response data from API
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class KontentAuthenticationError(KontentAPIError):
    """Authentication error with the Management API."""

    pass


class KontentPermissionError(KontentAPIError):
    """Permission denied error."""

    pass


class KontentNotFoundError(KontentAPIError):
    """Resource not found error."""

    pass


class KontentValidationError(KontentAPIError):
    """Request rejected by server-side validation (e.g. duplicate codename)."""

    pass


class KontentRateLimitError(KontentAPIError):
    """Rate limit exceeded error."""

    def __init__(self, message: str, retry_after: int = 60, **kwargs):
        """Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retry
            **kwargs: Additional arguments for base class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class KontentServerError(KontentAPIError):
    """Server side (5xx) error."""

    pass


# Errors worth retrying; everything else is a rejection.
TRANSIENT_ERRORS = (KontentRateLimitError, KontentServerError)
