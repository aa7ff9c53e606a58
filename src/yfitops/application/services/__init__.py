"""Application services."""

from yfitops.application.services.session_manager import SessionManager
from yfitops.application.services.spotify_auth_service import (
    AuthorizationCodeFlow,
    AuthUrlResult,
)
from yfitops.application.services.spotify_service import (
    QueueMode,
    SpotifyService,
    build_spotify_service,
    normalize_mode,
)

__all__ = [
    "AuthUrlResult",
    "AuthorizationCodeFlow",
    "QueueMode",
    "SessionManager",
    "SpotifyService",
    "build_spotify_service",
    "normalize_mode",
]
