"""External service integrations."""

from yfitops.infrastructure.integrations.spotify_client import SpotifyClient

__all__ = ["SpotifyClient"]
