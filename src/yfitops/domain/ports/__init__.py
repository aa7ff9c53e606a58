"""Ports (interfaces) the application layer depends on.

Hey future me - the queue services only ever talk to ICatalogClient! That keeps
them testable with AsyncMock(spec=ICatalogClient) and keeps httpx out of the
application layer. The real implementation is
infrastructure/integrations/spotify_client.py.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from yfitops.domain.dtos import (
    AlbumDetail,
    PlaybackState,
    PlaylistPage,
    PlaylistSummary,
    PlaylistTracksPage,
    SearchResults,
    TokenResponse,
    UserProfile,
)


class ICatalogClient(ABC):
    """Port for Spotify Web API operations used by the queue engine."""

    # Hard platform limits
    MAX_PLAYLISTS_PAGE = 50
    MAX_PLAYLIST_TRACKS_PAGE = 100
    MAX_TRACKS_PER_ADD = 100

    @abstractmethod
    def build_authorization_url(self, state: str, scopes: str) -> str:
        """Build the authorize URL the user opens in a browser."""

    @abstractmethod
    async def authorization_code_grant(self, code: str) -> TokenResponse:
        """Exchange an authorization code for tokens."""

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Get a new access token from a refresh token.

        Raises:
            TokenRefreshException: If the refresh token is no longer valid
        """

    @abstractmethod
    async def get_me(self, access_token: str) -> UserProfile:
        """Get the current user's profile."""

    @abstractmethod
    async def get_user_playlists(
        self, access_token: str, limit: int = 50, offset: int = 0
    ) -> PlaylistPage:
        """Get one page of the current user's playlists."""

    @abstractmethod
    async def create_playlist(
        self,
        user_id: str,
        name: str,
        access_token: str,
        description: str | None = None,
        public: bool = False,
        collaborative: bool = False,
    ) -> PlaylistSummary:
        """Create a playlist owned by user_id."""

    @abstractmethod
    async def get_playlist(
        self, playlist_id: str, access_token: str, fields: str | None = None
    ) -> PlaylistSummary:
        """Get playlist metadata including the live track total."""

    @abstractmethod
    async def add_tracks_to_playlist(
        self, playlist_id: str, uris: Sequence[str], access_token: str
    ) -> str | None:
        """Append up to 100 URIs to the tail. Returns the new snapshot id."""

    @abstractmethod
    async def get_playlist_tracks(
        self,
        playlist_id: str,
        access_token: str,
        limit: int = 100,
        offset: int = 0,
    ) -> PlaylistTracksPage:
        """Get one page of playlist items."""

    @abstractmethod
    async def reorder_tracks_in_playlist(
        self,
        playlist_id: str,
        range_start: int,
        insert_before: int,
        access_token: str,
        range_length: int = 1,
        snapshot_id: str | None = None,
    ) -> str | None:
        """Move a block of items. Returns the new snapshot id."""

    @abstractmethod
    async def get_current_playback_state(
        self,
        access_token: str,
        additional_types: Sequence[str] = ("track", "episode"),
    ) -> PlaybackState | None:
        """Get the current playback state, or None if nothing is playing."""

    @abstractmethod
    async def search(
        self,
        query: str,
        types: Sequence[str],
        access_token: str,
        limit: int = 20,
        market: str | None = None,
    ) -> SearchResults:
        """Search the catalog (rate-limit aware)."""

    @abstractmethod
    async def get_album(
        self, album_id: str, access_token: str, market: str | None = None
    ) -> AlbumDetail:
        """Get a full album including its tracks."""

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""


__all__ = ["ICatalogClient"]
