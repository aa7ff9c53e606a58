"""Spotify command surface used by the HTTP API.

Hey future me - this is the ONE object the API layer talks to! It wires the
catalog client, the session and the queue engine together and owns all of
their shared state (session, cached queue handle, cached profile). There is
no module-level singleton: build_spotify_service() creates it during the
FastAPI lifespan and tests construct it directly with doubles.
"""

import asyncio
import dataclasses
import logging
from collections.abc import Iterable
from enum import Enum

import httpx

from yfitops.application.services.queue import (
    BatchAppendEngine,
    PlaybackContextResolver,
    QueuePlaylistResolver,
    ReorderEngine,
    normalize_uris,
)
from yfitops.application.services.session_manager import SessionManager
from yfitops.application.services.spotify_auth_service import (
    AuthorizationCodeFlow,
    AuthUrlResult,
)
from yfitops.config import QueueSettings, Settings, SpotifySettings
from yfitops.domain.dtos import (
    AlbumDetail,
    AppendResult,
    PlaybackContext,
    QueueOutcome,
    QueuePlaylistHandle,
    ReorderResult,
    SearchResults,
    UserProfile,
)
from yfitops.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    InvalidOperationError,
    ValidationError,
)
from yfitops.domain.ports import ICatalogClient
from yfitops.infrastructure.integrations import SpotifyClient

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("track", "album")


class QueueMode(str, Enum):
    """Where queued tracks should end up."""

    APPEND = "append"
    NEXT = "next"
    NOW = "now"


_MODE_ALIASES = {
    "append": QueueMode.APPEND,
    "append_queue": QueueMode.APPEND,
    "next": QueueMode.NEXT,
    "play_next": QueueMode.NEXT,
    "now": QueueMode.NOW,
    "play_now": QueueMode.NOW,
}


def normalize_mode(mode: str | QueueMode | None) -> QueueMode:
    """Map a user-supplied mode to a QueueMode. Unknown values mean append."""
    if isinstance(mode, QueueMode):
        return mode
    if not isinstance(mode, str):
        return QueueMode.APPEND
    return _MODE_ALIASES.get(mode.strip().lower(), QueueMode.APPEND)


def _dedupe(uris: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for uri in uris:
        if uri not in seen:
            seen.add(uri)
            unique.append(uri)
    return unique


def _log_login_outcome(task: "asyncio.Task[UserProfile]") -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning("Background Spotify login failed: %s", error)


class SpotifyService:
    """Async command surface over the Spotify catalog and the queue playlist."""

    def __init__(
        self,
        client: ICatalogClient,
        spotify_settings: SpotifySettings,
        queue_settings: QueueSettings,
        session: SessionManager | None = None,
        auth_flow: AuthorizationCodeFlow | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            client: Catalog client port
            spotify_settings: Credentials, search and auth options
            queue_settings: Queue playlist name/description
            session: Session manager (defaults to one without a login capability)
            auth_flow: OAuth capture used by the HTTP callback/authorize routes
        """
        self._client = client
        self._spotify_settings = spotify_settings
        self._auth_flow = auth_flow
        self._session = session or SessionManager(client)
        self._playlists = QueuePlaylistResolver(client, self._session, queue_settings)
        self._append_engine = BatchAppendEngine(client, self._session)
        self._playback = PlaybackContextResolver(client, self._session)
        self._reorder = ReorderEngine(client, self._session, self._playlists, self._playback)
        self._login_task: asyncio.Task[UserProfile] | None = None

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def auth_flow(self) -> AuthorizationCodeFlow | None:
        return self._auth_flow

    def _require_configured(self) -> None:
        if not self._spotify_settings.is_configured:
            raise ConfigurationError()

    def _require_search_enabled(self) -> None:
        if not self._spotify_settings.enable_search:
            raise InvalidOperationError("Search is disabled by configuration.")

    # =========================================================================
    # SESSION
    # =========================================================================

    async def is_configured(self) -> bool:
        return self._spotify_settings.is_configured

    async def is_authenticated(self) -> bool:
        """True when a valid (possibly just refreshed) session exists."""
        self._require_configured()
        return await self._session.is_authenticated()

    async def login(self) -> UserProfile:
        """Run the OAuth login and return the logged-in user's profile.

        Raises:
            ConfigurationError: If credentials are missing
            AuthenticationError: If authorization fails or times out
        """
        self._require_configured()
        logger.info("Spotify login invoked")
        await self._session.login()
        # A different account may have logged in; its queue playlist differs
        self._playlists.forget()
        profile = await self._playlists.get_current_user(refresh=True)
        logger.info("Spotify login completed for user %s", profile.id)
        return profile

    def _require_auth_flow(self) -> AuthorizationCodeFlow:
        if self._auth_flow is None:
            raise AuthenticationError("Spotify OAuth provider is unavailable.")
        return self._auth_flow

    # Hey future me - this is the browser-driven login! The authorize-url route starts
    # the flow and a background login() that waits for the callback. The callback route
    # then resolves the wait and awaits that task, so the code exchange happens exactly
    # once no matter which route the user started from.
    async def begin_login(self) -> AuthUrlResult:
        """Start an authorization and a background login waiting for its callback.

        Raises:
            ConfigurationError: If credentials are missing
            AuthenticationError: If no OAuth capture is wired
        """
        self._require_configured()
        flow = self._require_auth_flow()
        result = flow.begin()
        self._login_task = asyncio.create_task(self.login())
        self._login_task.add_done_callback(_log_login_outcome)
        return result

    async def complete_login(self, callback_url: str) -> UserProfile | None:
        """Deliver an OAuth redirect to the waiting login.

        Returns:
            The logged-in profile when a background login was waiting, else None
            (an interactive login() call picks the code up itself)

        Raises:
            AuthenticationError: Wrong state, foreign redirect or provider error
        """
        self._require_configured()
        flow = self._require_auth_flow()
        flow.handle_callback(callback_url)
        task, self._login_task = self._login_task, None
        if task is None:
            return None
        return await task

    async def get_current_user(self) -> UserProfile:
        self._require_configured()
        return await self._playlists.get_current_user()

    # =========================================================================
    # CATALOG
    # =========================================================================

    async def search(self, query: str) -> SearchResults:
        """Search tracks and albums. Single releases are left out of albums.

        Raises:
            ConfigurationError: If credentials are missing
            InvalidOperationError: If search is disabled
            AuthenticationError: If there is no valid session
            RateLimitExceededError: If Spotify keeps answering 429
        """
        self._require_configured()
        self._require_search_enabled()

        query = (query or "").strip()
        if not query:
            return SearchResults()

        logger.info("Search invoked: %r", query)
        access_token = await self._session.require_access_token()
        results = await self._client.search(
            query,
            SEARCH_TYPES,
            access_token,
            limit=self._spotify_settings.search_limit,
            market=self._spotify_settings.market or None,
        )
        albums = [
            album
            for album in results.albums
            if (album.album_type or "").lower() != "single"
        ]
        logger.info(
            "Search completed: %r -> %d tracks, %d albums",
            query,
            len(results.tracks),
            len(albums),
        )
        return SearchResults(tracks=results.tracks, albums=albums)

    async def get_album(self, album_id: str) -> AlbumDetail:
        self._require_configured()
        self._require_search_enabled()
        if not album_id or not album_id.strip():
            raise ValidationError("An album ID is required.")

        access_token = await self._session.require_access_token()
        album = await self._client.get_album(
            album_id.strip(), access_token, market=self._spotify_settings.market or None
        )
        logger.info("Fetched album %s (%d tracks)", album.id, len(album.tracks))
        return album

    # =========================================================================
    # QUEUE
    # =========================================================================

    async def ensure_queue(self) -> QueuePlaylistHandle:
        self._require_configured()
        handle = await self._playlists.ensure_queue_playlist()
        logger.info("Queue playlist ready: %s", handle.playlist_id)
        return handle

    async def queue_append(self, uris: Iterable[object] | None) -> AppendResult:
        """Append URIs to the queue playlist, creating it if needed."""
        self._require_configured()
        handle = await self._playlists.ensure_queue_playlist()
        logger.info("Queue append invoked on %s", handle.playlist_id)
        result = await self._append_engine.append_tracks(handle.playlist_id, uris)
        logger.info(
            "Queue append completed on %s: %d tracks from index %s",
            handle.playlist_id,
            result.appended_count,
            result.range_start,
        )
        return result

    async def queue_play_next(
        self,
        range_start: int,
        range_length: int,
        snapshot_id: str | None = None,
    ) -> ReorderResult:
        """Move a block of the queue playlist right after the current track."""
        self._require_configured()
        logger.info(
            "Queue play-next invoked: range_start=%s range_length=%s",
            range_start,
            range_length,
        )
        result = await self._reorder.move_block_after_current(
            range_start, range_length, snapshot_id
        )
        logger.info(
            "Queue play-next completed on %s: insert_before=%d",
            result.playlist_id,
            result.insert_before,
        )
        return result

    async def get_playback_context(self) -> PlaybackContext | None:
        """Current playback context, flagged when it is the queue playlist."""
        self._require_configured()
        context = await self._playback.get_playback_context()
        handle = self._playlists.cached_handle
        if context is None or handle is None or context.error:
            return context
        return dataclasses.replace(
            context, matches_queue=context.context_uri == handle.playlist_uri
        )

    async def queue_uris(
        self,
        uris: Iterable[object] | None,
        mode: str | QueueMode | None = QueueMode.APPEND,
        source: str = "tracks",
    ) -> QueueOutcome:
        """Append URIs to the queue and, for next/now, move them after the current track.

        Args:
            uris: Track URIs (blanks dropped, repeats within the request removed)
            mode: append/next/now (aliases accepted, unknown means append)
            source: Free-form label of where the request came from

        Raises:
            ValidationError: If no usable URI remains
        """
        self._require_configured()
        queue_mode = normalize_mode(mode)
        unique = _dedupe(normalize_uris(uris))
        if not unique:
            raise ValidationError("No track URIs to queue.")

        logger.info(
            "Queueing %d tracks from %s (mode=%s)", len(unique), source, queue_mode.value
        )
        handle = await self._playlists.ensure_queue_playlist()
        append_result = await self._append_engine.append_tracks(handle.playlist_id, unique)

        reorder_result = None
        if (
            queue_mode in (QueueMode.NEXT, QueueMode.NOW)
            and append_result.range_start is not None
            and append_result.range_length > 0
        ):
            reorder_result = await self.queue_play_next(
                append_result.range_start,
                append_result.range_length,
                append_result.snapshot_id,
            )

        playback = await self.get_playback_context()
        return QueueOutcome(
            source=source,
            mode=queue_mode.value,
            uris=unique,
            playlist_id=handle.playlist_id,
            playlist_uri=handle.playlist_uri,
            playlist_url=handle.web_url,
            append_result=append_result,
            reorder_result=reorder_result,
            playback=playback,
        )

    async def queue_album(
        self,
        album_id: str,
        mode: str | QueueMode | None = QueueMode.APPEND,
        source: str = "album",
    ) -> QueueOutcome:
        """Queue every track of an album in album order."""
        album = await self.get_album(album_id)
        uris = album.playable_uris
        if not uris:
            raise ValidationError(f"Album {album.id} has no playable tracks.")

        outcome = await self.queue_uris(uris, mode=mode, source=source)
        return dataclasses.replace(
            outcome, entity_type="album", entity_id=album.id, entity_name=album.name
        )

    async def close(self) -> None:
        if self._login_task is not None and not self._login_task.done():
            self._login_task.cancel()
        await self._client.close()


def build_spotify_service(
    settings: Settings, http_client: httpx.AsyncClient | None = None
) -> SpotifyService:
    """Wire the production SpotifyService (HTTP client, OAuth capture, session)."""
    spotify_settings = settings.spotify
    client = SpotifyClient(spotify_settings, http_client=http_client)
    auth_flow = AuthorizationCodeFlow(client, spotify_settings)
    session = SessionManager(
        client, obtain_authorization_code=auth_flow.obtain_authorization_code
    )
    return SpotifyService(
        client,
        spotify_settings,
        settings.queue,
        session=session,
        auth_flow=auth_flow,
    )
