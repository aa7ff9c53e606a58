"""Spotify session endpoint models."""

from pydantic import BaseModel, Field

from yfitops.domain.dtos import UserProfile


class SpotifyStatusResponse(BaseModel):
    """Configuration and session state."""

    configured: bool = Field(description="Client ID, secret and redirect URI are set")
    authenticated: bool = Field(description="A valid (refreshable) session exists")


class AuthorizeUrlResponse(BaseModel):
    """Spotify authorize URL for a freshly started login."""

    authorization_url: str = Field(description="Open this URL to grant access")
    state: str = Field(description="State nonce the callback must echo")


class CallbackResponse(BaseModel):
    """Result of delivering the OAuth redirect."""

    status: str = Field(default="authorized")
    user: UserProfile | None = Field(
        default=None, description="Logged-in profile when a background login finished"
    )
