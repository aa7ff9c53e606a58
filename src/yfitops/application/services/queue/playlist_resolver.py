"""Find-or-create the hidden queue playlist."""

import asyncio
import logging

from yfitops.application.services.session_manager import SessionManager
from yfitops.config import QueueSettings
from yfitops.domain.dtos import PlaylistSummary, QueuePlaylistHandle, UserProfile
from yfitops.domain.ports import ICatalogClient

logger = logging.getLogger(__name__)


class QueuePlaylistResolver:
    """Resolves and caches the queue playlist for the process lifetime.

    Hey future me - the cache is what keeps us from creating a second queue
    playlist on every call. Across restarts we rely on the name + owner match
    instead, which is best effort: if the user renamed or duplicated the
    playlist we take the FIRST match in /me/playlists order.
    """

    PAGE_SIZE = 50

    def __init__(
        self,
        client: ICatalogClient,
        session: SessionManager,
        settings: QueueSettings,
    ) -> None:
        self._client = client
        self._session = session
        self._settings = settings
        self._handle: QueuePlaylistHandle | None = None
        self._profile: UserProfile | None = None
        self._lock = asyncio.Lock()

    @property
    def cached_handle(self) -> QueuePlaylistHandle | None:
        """Handle resolved so far (None before the first ensure)."""
        return self._handle

    def forget(self) -> None:
        """Drop cached handle and profile (e.g. after logging in as someone else)."""
        self._handle = None
        self._profile = None

    async def get_current_user(self, refresh: bool = False) -> UserProfile:
        """Current user's profile, cached after the first lookup.

        Raises:
            AuthenticationError: If there is no valid session
            ExternalServiceError: If /me fails
        """
        if self._profile is not None and not refresh:
            return self._profile
        access_token = await self._session.require_access_token()
        self._profile = await self._client.get_me(access_token)
        return self._profile

    async def ensure_queue_playlist(self) -> QueuePlaylistHandle:
        """Return the queue playlist, finding or creating it on first use.

        Raises:
            AuthenticationError: If there is no valid session
            ExternalServiceError: If listing or creating playlists fails
        """
        if self._handle is not None:
            return self._handle

        async with self._lock:
            # Another request may have resolved it while we waited
            if self._handle is not None:
                return self._handle

            access_token = await self._session.require_access_token()
            profile = await self.get_current_user()

            playlist = await self._find_existing(access_token, profile.id)
            if playlist is not None:
                logger.info(
                    "Reusing queue playlist %s for user %s", playlist.id, profile.id
                )
            else:
                playlist = await self._client.create_playlist(
                    user_id=profile.id,
                    name=self._settings.playlist_name,
                    access_token=access_token,
                    description=self._settings.playlist_description,
                    public=False,
                    collaborative=False,
                )
                logger.info(
                    "Created queue playlist %s for user %s", playlist.id, profile.id
                )

            self._handle = QueuePlaylistHandle(
                playlist_id=playlist.id, playlist_uri=playlist.uri
            )
            return self._handle

    async def _find_existing(
        self, access_token: str, user_id: str
    ) -> PlaylistSummary | None:
        """Scan the user's playlists for the reserved name owned by user_id."""
        name = self._settings.playlist_name
        offset = 0
        while True:
            page = await self._client.get_user_playlists(
                access_token, limit=self.PAGE_SIZE, offset=offset
            )
            for playlist in page.items:
                if playlist.name == name and playlist.owner_id == user_id:
                    return playlist

            offset += len(page.items)
            if not page.items or len(page.items) < self.PAGE_SIZE or offset >= page.total:
                logger.debug(
                    "No existing queue playlist found after scanning %d playlists", offset
                )
                return None
