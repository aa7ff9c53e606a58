"""Tests for domain exceptions."""

from yfitops.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DomainException,
    ExternalServiceError,
    InvalidArgument,
    NotAuthenticated,
    NotConfigured,
    OutOfBoundsError,
    RateLimitExceededError,
    TokenRefreshException,
    UpstreamError,
    ValidationError,
)


class TestDomainExceptions:
    """Test exception attributes and hierarchy."""

    def test_message_attribute(self) -> None:
        exc = ValidationError("bad input")
        assert exc.message == "bad input"
        assert str(exc) == "bad input"
        assert isinstance(exc, DomainException)

    def test_default_messages(self) -> None:
        assert "not configured" in ConfigurationError().message
        assert "not authenticated" in AuthenticationError().message

    def test_token_refresh_is_authentication_error(self) -> None:
        exc = TokenRefreshException(error_code="invalid_grant", http_status=400)
        assert isinstance(exc, AuthenticationError)
        assert exc.requires_reauth is True

    def test_token_refresh_without_reauth(self) -> None:
        exc = TokenRefreshException(error_code="server_error", http_status=500)
        assert exc.requires_reauth is False

    def test_out_of_bounds_carries_range(self) -> None:
        exc = OutOfBoundsError("nope", range_start=8, range_length=5, total=10)
        assert (exc.range_start, exc.range_length, exc.total) == (8, 5, 10)

    def test_rate_limit_and_upstream_details(self) -> None:
        assert RateLimitExceededError("slow down", retry_after=3.0).retry_after == 3.0
        exc = ExternalServiceError("boom", http_status=502, operation="get_me")
        assert exc.http_status == 502
        assert exc.operation == "get_me"

    def test_rate_limit_is_upstream_error(self) -> None:
        exc = RateLimitExceededError("slow down", retry_after=1.0, operation="reorder")
        assert isinstance(exc, ExternalServiceError)
        assert exc.http_status == 429
        assert exc.operation == "reorder"

    def test_short_aliases(self) -> None:
        assert NotConfigured is ConfigurationError
        assert NotAuthenticated is AuthenticationError
        assert InvalidArgument is ValidationError
        assert UpstreamError is ExternalServiceError
