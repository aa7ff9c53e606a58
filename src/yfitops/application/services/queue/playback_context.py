"""Current playback context and track lookup inside a playlist."""

import logging

from yfitops.application.services.session_manager import SessionManager
from yfitops.domain.dtos import PlaybackContext
from yfitops.domain.exceptions import (
    ExternalServiceError,
    ValidationError,
)
from yfitops.domain.ports import ICatalogClient

logger = logging.getLogger(__name__)


class PlaybackContextResolver:
    """Reads what the listener is playing and where it sits in a playlist."""

    PAGE_SIZE = 100
    ADDITIONAL_TYPES = ("track", "episode")

    def __init__(self, client: ICatalogClient, session: SessionManager) -> None:
        self._client = client
        self._session = session

    # Hey future me - playback info is BEST EFFORT! A failed fetch comes back as a
    # PlaybackContext with error set instead of an exception, so queueing never fails
    # just because /me/player hiccuped. Only a missing session still raises.
    async def get_playback_context(self) -> PlaybackContext | None:
        """Fetch the current playback context.

        Returns:
            PlaybackContext, None when nothing is playing, or a context with
            ``error`` set when the fetch failed

        Raises:
            AuthenticationError: If there is no valid session
        """
        access_token = await self._session.require_access_token()
        try:
            state = await self._client.get_current_playback_state(
                access_token, additional_types=self.ADDITIONAL_TYPES
            )
        except ExternalServiceError as e:
            logger.warning("Could not read playback state: %s", e.message)
            return PlaybackContext(context_uri=None, current_track_uri=None, error=e.message)

        if state is None:
            return None

        return PlaybackContext(
            context_uri=state.context_uri,
            current_track_uri=state.item.uri if state.item else None,
            raw=state.raw,
            context_type=state.context_type,
            is_playing=state.is_playing,
        )

    # Relinking: Spotify may serve a regional substitute whose URI differs from the one
    # stored in the playlist. TrackRef.matches() checks both uri and linked_from.uri.
    async def locate_track_in_playlist(
        self, playlist_id: str, target_uri: str
    ) -> int | None:
        """Absolute zero-based index of the first item matching target_uri.

        Pages through the playlist in order and stops at the first match.

        Raises:
            ValidationError: If playlist_id or target_uri is blank
            AuthenticationError: If there is no valid session
            ExternalServiceError: If a page fetch fails
        """
        if not playlist_id or not target_uri:
            raise ValidationError("playlist_id and target_uri are required.")

        access_token = await self._session.require_access_token()
        offset = 0
        while True:
            page = await self._client.get_playlist_tracks(
                playlist_id, access_token, limit=self.PAGE_SIZE, offset=offset
            )
            for position, item in enumerate(page.items):
                if item.track is not None and item.track.matches(target_uri):
                    return offset + position

            offset += len(page.items)
            if not page.items or len(page.items) < self.PAGE_SIZE or offset >= page.total:
                return None
