"""Exception handlers that turn domain errors into JSON responses.

Every domain exception becomes ``{"detail": message}`` with a fixed status:

    ConfigurationError      503
    AuthenticationError     401 (TokenRefreshException included)
    ValidationError         422
    OutOfBoundsError        409
    InvalidOperationError   409
    RateLimitExceededError  429 (+ Retry-After header when known)
    ExternalServiceError    502
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from yfitops.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DomainException,
    ExternalServiceError,
    InvalidOperationError,
    OutOfBoundsError,
    RateLimitExceededError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_EXCEPTION: dict[type[DomainException], int] = {
    ConfigurationError: status.HTTP_503_SERVICE_UNAVAILABLE,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    ValidationError: 422,  # Unprocessable Content
    OutOfBoundsError: status.HTTP_409_CONFLICT,
    InvalidOperationError: status.HTTP_409_CONFLICT,
    RateLimitExceededError: status.HTTP_429_TOO_MANY_REQUESTS,
    ExternalServiceError: status.HTTP_502_BAD_GATEWAY,
}


def _status_for(exc: DomainException) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in STATUS_BY_EXCEPTION:
            return STATUS_BY_EXCEPTION[exc_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


# Hey future me, these are GLOBAL handlers - register them during app setup, before the
# first request! One handler on DomainException covers the whole taxonomy because
# _status_for walks the MRO, so TokenRefreshException lands on 401 via AuthenticationError.
def register_exception_handlers(app: FastAPI) -> None:
    """Register the domain exception handler on the app."""

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request, exc: DomainException
    ) -> JSONResponse:
        status_code = _status_for(exc)
        headers: dict[str, str] | None = None

        if isinstance(exc, RateLimitExceededError) and exc.retry_after is not None:
            headers = {"Retry-After": str(math.ceil(exc.retry_after))}

        if status_code >= 500:
            logger.error(
                "%s at %s: %s",
                type(exc).__name__,
                request.url.path,
                exc.message,
                extra={"path": request.url.path, "error": exc.message},
            )
        else:
            logger.warning(
                "%s at %s: %s",
                type(exc).__name__,
                request.url.path,
                exc.message,
                extra={"path": request.url.path, "error": exc.message},
            )
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message},
            headers=headers,
        )
