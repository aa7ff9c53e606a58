"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing
    # str(exception). Don't raise this directly - always use a specific subclass so callers
    # (and the FastAPI handlers) can map it to the right status.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when Spotify client id, client secret or redirect URI is missing.
    Permanent until the app is reconfigured.

    HTTP Status: 503 (Service Unavailable)
    """

    def __init__(
        self, message: str = "Spotify credentials are not configured."
    ) -> None:
        super().__init__(message)


class AuthenticationError(DomainException):
    """User is not authenticated or the session expired.

    Recoverable by logging in again.

    HTTP Status: 401
    """

    def __init__(
        self, message: str = "Spotify session is not authenticated."
    ) -> None:
        super().__init__(message)


class TokenRefreshException(AuthenticationError):
    """Raised when token refresh fails and re-authentication is required.

    Hey future me - Spotify answers 400 invalid_grant when the refresh token was
    revoked (user removed app access, credentials rotated...). 401/403 on the
    token endpoint mean the same thing for us: log in again.
    """

    def __init__(
        self,
        message: str = "Token refresh failed. Please re-authenticate with Spotify.",
        error_code: str | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code  # e.g., "invalid_grant"
        self.http_status = http_status  # e.g., 400, 401

    @property
    def requires_reauth(self) -> bool:
        """Check if error requires user re-authentication."""
        return self.error_code == "invalid_grant" or self.http_status in (400, 401, 403)


class ValidationError(DomainException):
    """Caller input failed validation.

    Raised before any network call (bad range values, no usable track URIs,
    oversized batches).

    HTTP Status: 422
    """

    pass


class OutOfBoundsError(DomainException):
    """A playlist range does not fit the playlist's current size.

    The caller must re-fetch state (the playlist may have changed elsewhere).

    HTTP Status: 409
    """

    def __init__(
        self, message: str, *, range_start: int, range_length: int, total: int
    ) -> None:
        super().__init__(message)
        self.range_start = range_start
        self.range_length = range_length
        self.total = total


class InvalidOperationError(DomainException):
    """A semantically disallowed action.

    Example: moving the block that contains the currently playing track, or
    searching while search is disabled.

    HTTP Status: 409
    """

    pass


class ExternalServiceError(DomainException):
    """Spotify returned an error.

    Carries the HTTP status (None for transport failures) and the adapter
    operation name for diagnostics.

    HTTP Status: 502 (Bad Gateway)
    """

    def __init__(
        self,
        message: str,
        http_status: int | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.operation = operation


class RateLimitExceededError(ExternalServiceError):
    """Spotify rate limit still in effect after the bounded retries.

    An upstream failure like any other, so queue code that catches
    ExternalServiceError sees it too; the API still answers 429.

    HTTP Status: 429
    """

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, http_status=429, operation=operation)
        self.retry_after = retry_after


# Short aliases matching the names used in queue error messages and API docs.
NotConfigured = ConfigurationError
NotAuthenticated = AuthenticationError
InvalidArgument = ValidationError
UpstreamError = ExternalServiceError

__all__ = [
    "DomainException",
    "ConfigurationError",
    "AuthenticationError",
    "TokenRefreshException",
    "ValidationError",
    "OutOfBoundsError",
    "InvalidOperationError",
    "RateLimitExceededError",
    "ExternalServiceError",
    "NotConfigured",
    "NotAuthenticated",
    "InvalidArgument",
    "UpstreamError",
]
