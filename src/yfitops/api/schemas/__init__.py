"""Request and response models for the HTTP API."""

from yfitops.api.schemas.queue import (
    AppendRequest,
    PlayNextRequest,
    QueueAlbumRequest,
    QueueTracksRequest,
)
from yfitops.api.schemas.spotify import (
    AuthorizeUrlResponse,
    CallbackResponse,
    SpotifyStatusResponse,
)

__all__ = [
    "AppendRequest",
    "AuthorizeUrlResponse",
    "CallbackResponse",
    "PlayNextRequest",
    "QueueAlbumRequest",
    "QueueTracksRequest",
    "SpotifyStatusResponse",
]
