"""Spotify Web API client (httpx) for the queue engine."""

import logging
from collections.abc import Sequence
from typing import Any
from urllib.parse import urlencode

import httpx

from yfitops.config.settings import SpotifySettings
from yfitops.domain.dtos import (
    AlbumDetail,
    AlbumResult,
    PlaybackState,
    PlaylistItem,
    PlaylistPage,
    PlaylistSummary,
    PlaylistTracksPage,
    SearchResults,
    TokenResponse,
    TrackRef,
    TrackResult,
    UserProfile,
)
from yfitops.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ExternalServiceError,
    RateLimitExceededError,
    TokenRefreshException,
    ValidationError,
)
from yfitops.domain.ports import ICatalogClient
from yfitops.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_PLAYLIST_FIELDS = (
    "id,uri,name,owner(id),public,collaborative,snapshot_id,tracks(total)"
)


class SpotifyClient(ICatalogClient):
    """HTTP client for Spotify API operations used by the queue engine."""

    AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
    TOKEN_URL = "https://accounts.spotify.com/api/token"  # nosec B105 - public endpoint URL
    API_BASE_URL = "https://api.spotify.com/v1"

    # Search is the only call that retries on 429. Everything else surfaces the
    # failure to the caller, who decides whether to retry.
    SEARCH_MAX_RETRIES = 2

    # Hey future me, we DON'T create the httpx client here! It gets lazy-loaded in
    # _get_client() so constructing SpotifyClient outside a running loop is safe.
    # Tests pass their own AsyncClient (MockTransport) via http_client.
    def __init__(
        self,
        settings: SpotifySettings,
        http_client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """
        Initialize Spotify client.

        Args:
            settings: Spotify configuration settings
            http_client: Optional preconfigured AsyncClient (tests, shared pools)
            rate_limiter: Optional limiter (defaults to RateLimiter.for_spotify())
        """
        self.settings = settings
        self._client: httpx.AsyncClient | None = http_client
        self._rate_limiter = rate_limiter or RateLimiter.for_spotify()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # REQUEST PLUMBING
    # =========================================================================

    # Hey future me - ALL Web API calls go through here!
    # - Token Bucket rate limiting (prevents most 429s)
    # - Bounded retry on 429 (only when max_retries > 0, i.e. search)
    # - Respects Retry-After header from Spotify
    # - Non-2xx becomes ExternalServiceError with the status code attached
    async def _api_request(
        self,
        method: str,
        path: str,
        access_token: str,
        operation: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        max_retries: int = 0,
    ) -> httpx.Response:
        """Make rate-limited API request.

        Args:
            method: HTTP method (GET, POST, PUT)
            path: Path below API_BASE_URL (e.g. "/me/playlists")
            access_token: OAuth access token
            operation: Operation name for logs and errors
            params: Query parameters
            json: JSON body
            max_retries: Max retries on 429

        Returns:
            Successful httpx.Response

        Raises:
            RateLimitExceededError: 429 after all retries
            ExternalServiceError: Any other non-2xx or transport failure
        """
        client = await self._get_client()
        url = f"{self.API_BASE_URL}{path}"
        headers = {"Authorization": f"Bearer {access_token}"}

        attempt = 0
        while True:
            try:
                async with self._rate_limiter:
                    response = await client.request(
                        method=method,
                        url=url,
                        params=params,
                        json=json,
                        headers=headers,
                    )
            except httpx.HTTPError as e:
                logger.error(
                    "Spotify %s failed: transport error %s (%s %s)",
                    operation,
                    type(e).__name__,
                    method,
                    path,
                )
                raise ExternalServiceError(
                    f"Spotify request failed during {operation}: {e}",
                    operation=operation,
                ) from e

            if response.status_code != 429:
                self._rate_limiter.reset_backoff()
                if response.is_error:
                    self._raise_for_status(response, operation)
                return response

            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            if attempt >= max_retries:
                logger.error(
                    "Spotify %s rate limited (429) after %d retries. Retry-After: %s",
                    operation,
                    max_retries,
                    retry_after if retry_after is not None else "not provided",
                )
                raise RateLimitExceededError(
                    f"Spotify rate limit exceeded during {operation}. "
                    f"Retry after {retry_after if retry_after is not None else 'a short while'} seconds.",
                    retry_after=retry_after,
                    operation=operation,
                )

            attempt += 1
            wait_time = await self._rate_limiter.handle_rate_limit_response(retry_after)
            logger.warning(
                "Spotify 429 on %s (retry %d/%d): waited %.1fs",
                operation,
                attempt,
                max_retries,
                wait_time,
            )

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        """Convert an error response into ExternalServiceError."""
        detail = _error_message(response)
        logger.error(
            "Spotify %s failed with HTTP %d: %s",
            operation,
            response.status_code,
            detail,
        )
        raise ExternalServiceError(
            f"Spotify {operation} failed ({response.status_code}): {detail}",
            http_status=response.status_code,
            operation=operation,
        )

    def _require_credentials(self) -> None:
        if not self.settings.is_configured:
            raise ConfigurationError(
                "Spotify credentials are not configured. Set SPOTIFY_CLIENT_ID, "
                "SPOTIFY_CLIENT_SECRET and SPOTIFY_REDIRECT_URI."
            )

    async def _token_request(self, data: dict[str, str], operation: str) -> httpx.Response:
        """POST to the accounts token endpoint with HTTP Basic client auth."""
        self._require_credentials()
        client = await self._get_client()
        try:
            return await client.post(
                self.TOKEN_URL,
                data=data,
                auth=(self.settings.client_id, self.settings.client_secret),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            logger.error("Spotify %s failed: transport error %s", operation, type(e).__name__)
            raise ExternalServiceError(
                f"Spotify request failed during {operation}: {e}",
                operation=operation,
            ) from e

    # =========================================================================
    # AUTHORIZATION
    # =========================================================================

    def build_authorization_url(self, state: str, scopes: str) -> str:
        """
        Build Spotify OAuth authorization URL.

        Args:
            state: CSRF state nonce (validated again on callback)
            scopes: Space-separated scopes

        Returns:
            Authorization URL

        Raises:
            ConfigurationError: If credentials are not configured
        """
        self._require_credentials()
        params = {
            "client_id": self.settings.client_id,
            "response_type": "code",
            "redirect_uri": self.settings.redirect_uri,
            "state": state,
            "scope": scopes,
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    # Yo future me, the code is single-use and expires in 10 minutes! redirect_uri MUST
    # match the one used for the authorize URL or Spotify rejects the exchange.
    async def authorization_code_grant(self, code: str) -> TokenResponse:
        """
        Exchange authorization code for tokens.

        Raises:
            AuthenticationError: If Spotify rejects the code
            ExternalServiceError: For other HTTP failures
        """
        response = await self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.settings.redirect_uri,
            },
            operation="authorization_code_grant",
        )
        if response.status_code in (400, 401, 403):
            detail = _error_message(response)
            logger.warning("Spotify rejected authorization code: %s", detail)
            raise AuthenticationError(f"Spotify authorization failed: {detail}")
        if response.is_error:
            self._raise_for_status(response, "authorization_code_grant")
        return _convert_token(_json_object(response, "authorization_code_grant"))

    # Hey future me - check for invalid_grant BEFORE the generic error path!
    # Spotify returns 400 {"error": "invalid_grant"} when the refresh token is revoked.
    async def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """
        Refresh access token using refresh token.

        Raises:
            TokenRefreshException: If refresh token is invalid/revoked
            ExternalServiceError: For other HTTP errors
        """
        response = await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            operation="refresh_access_token",
        )

        if response.status_code == 400:
            error_data = _safe_json(response)
            error_code = error_data.get("error", "") if isinstance(error_data, dict) else ""
            if error_code == "invalid_grant":
                description = error_data.get(
                    "error_description", "Refresh token is invalid or has been revoked"
                )
                raise TokenRefreshException(
                    message=f"Refresh token invalid: {description}. Please re-authenticate with Spotify.",
                    error_code=error_code,
                    http_status=400,
                )

        if response.status_code in (401, 403):
            raise TokenRefreshException(
                message="Spotify access denied. Please re-authenticate with Spotify.",
                error_code="access_denied",
                http_status=response.status_code,
            )

        if response.is_error:
            self._raise_for_status(response, "refresh_access_token")
        return _convert_token(_json_object(response, "refresh_access_token"))

    # =========================================================================
    # USER & PLAYLISTS
    # =========================================================================

    async def get_me(self, access_token: str) -> UserProfile:
        """Get current authenticated user's profile."""
        response = await self._api_request("GET", "/me", access_token, operation="get_me")
        return _convert_user(_json_object(response, "get_me"))

    # Hey future me, Spotify caps /me/playlists at 50 per page. The resolver handles
    # the pagination math, this just fetches ONE page.
    async def get_user_playlists(
        self, access_token: str, limit: int = 50, offset: int = 0
    ) -> PlaylistPage:
        """Get one page of the current user's playlists."""
        limit = min(limit, self.MAX_PLAYLISTS_PAGE)
        response = await self._api_request(
            "GET",
            "/me/playlists",
            access_token,
            operation="get_user_playlists",
            params={"limit": limit, "offset": offset},
        )
        data = _json_object(response, "get_user_playlists")
        items = [
            _convert_playlist(item) for item in data.get("items") or [] if item is not None
        ]
        return PlaylistPage(
            items=items,
            total=int(data.get("total") or 0),
            offset=int(data.get("offset") or offset),
            limit=int(data.get("limit") or limit),
            next=data.get("next"),
        )

    async def create_playlist(
        self,
        user_id: str,
        name: str,
        access_token: str,
        description: str | None = None,
        public: bool = False,
        collaborative: bool = False,
    ) -> PlaylistSummary:
        """Create a playlist for user_id."""
        body: dict[str, Any] = {
            "name": name,
            "public": public,
            "collaborative": collaborative,
        }
        if description is not None:
            body["description"] = description

        response = await self._api_request(
            "POST",
            f"/users/{user_id}/playlists",
            access_token,
            operation="create_playlist",
            json=body,
        )
        return _convert_playlist(_json_object(response, "create_playlist"))

    async def get_playlist(
        self, playlist_id: str, access_token: str, fields: str | None = None
    ) -> PlaylistSummary:
        """Get playlist metadata (live track total included)."""
        response = await self._api_request(
            "GET",
            f"/playlists/{playlist_id}",
            access_token,
            operation="get_playlist",
            params={"fields": fields or DEFAULT_PLAYLIST_FIELDS},
        )
        data = _json_object(response, "get_playlist")
        data.setdefault("id", playlist_id)
        return _convert_playlist(data)

    async def add_tracks_to_playlist(
        self, playlist_id: str, uris: Sequence[str], access_token: str
    ) -> str | None:
        """Append URIs to the playlist tail (max 100 per call)."""
        if not uris:
            raise ValidationError("At least one track URI is required.")
        if len(uris) > self.MAX_TRACKS_PER_ADD:
            raise ValidationError(
                f"Cannot add more than {self.MAX_TRACKS_PER_ADD} tracks per request "
                f"(got {len(uris)})."
            )

        response = await self._api_request(
            "POST",
            f"/playlists/{playlist_id}/tracks",
            access_token,
            operation="add_tracks_to_playlist",
            json={"uris": list(uris)},
        )
        return _snapshot_id(response)

    # Playlist items are capped at 100 per page; caller handles pagination math.
    async def get_playlist_tracks(
        self,
        playlist_id: str,
        access_token: str,
        limit: int = 100,
        offset: int = 0,
    ) -> PlaylistTracksPage:
        """Get a page of playlist items."""
        limit = min(limit, self.MAX_PLAYLIST_TRACKS_PAGE)
        response = await self._api_request(
            "GET",
            f"/playlists/{playlist_id}/tracks",
            access_token,
            operation="get_playlist_tracks",
            params={"limit": limit, "offset": offset},
        )
        data = _json_object(response, "get_playlist_tracks")
        items = [
            PlaylistItem(
                track=_convert_track_ref(entry.get("track")),
                added_at=entry.get("added_at"),
            )
            for entry in data.get("items") or []
            if isinstance(entry, dict)
        ]
        return PlaylistTracksPage(
            items=items,
            total=int(data.get("total") or 0),
            offset=int(data.get("offset") or offset),
            limit=int(data.get("limit") or limit),
            next=data.get("next"),
        )

    # Hey future me - snapshot_id is an optimistic-concurrency guard. If the playlist
    # changed since that snapshot, Spotify rejects the move and we surface it as
    # ExternalServiceError. Don't "fix" that by retrying without the snapshot!
    async def reorder_tracks_in_playlist(
        self,
        playlist_id: str,
        range_start: int,
        insert_before: int,
        access_token: str,
        range_length: int = 1,
        snapshot_id: str | None = None,
    ) -> str | None:
        """Move range_length items starting at range_start before insert_before."""
        body: dict[str, Any] = {
            "range_start": range_start,
            "insert_before": insert_before,
            "range_length": range_length,
        }
        if snapshot_id:
            body["snapshot_id"] = snapshot_id

        response = await self._api_request(
            "PUT",
            f"/playlists/{playlist_id}/tracks",
            access_token,
            operation="reorder_tracks_in_playlist",
            json=body,
        )
        return _snapshot_id(response)

    # =========================================================================
    # PLAYBACK
    # =========================================================================

    # Spotify answers 204 No Content when nothing is playing on any device.
    async def get_current_playback_state(
        self,
        access_token: str,
        additional_types: Sequence[str] = ("track", "episode"),
    ) -> PlaybackState | None:
        """Get the current playback state, or None if nothing is playing."""
        response = await self._api_request(
            "GET",
            "/me/player",
            access_token,
            operation="get_current_playback_state",
            params={"additional_types": ",".join(additional_types)},
        )
        if response.status_code == 204 or not response.content:
            return None
        data = _safe_json(response)
        if not isinstance(data, dict) or not data:
            return None
        return _convert_playback_state(data)

    # =========================================================================
    # CATALOG
    # =========================================================================

    async def search(
        self,
        query: str,
        types: Sequence[str],
        access_token: str,
        limit: int = 20,
        market: str | None = None,
    ) -> SearchResults:
        """Search the catalog with bounded 429 retry."""
        params: dict[str, Any] = {
            "q": query,
            "type": ",".join(types),
            "limit": min(limit, 50),
        }
        if market:
            params["market"] = market

        response = await self._api_request(
            "GET",
            "/search",
            access_token,
            operation="search",
            params=params,
            max_retries=self.SEARCH_MAX_RETRIES,
        )
        data = _json_object(response, "search")
        tracks = [
            _convert_track(item)
            for item in (data.get("tracks") or {}).get("items") or []
            if item
        ]
        albums = [
            _convert_album(item)
            for item in (data.get("albums") or {}).get("items") or []
            if item
        ]
        return SearchResults(tracks=tracks, albums=albums)

    # Album track lists are paginated at 50. For box sets we follow the album's
    # /tracks pages until total is reached so the whole album gets queued.
    async def get_album(
        self, album_id: str, access_token: str, market: str | None = None
    ) -> AlbumDetail:
        """Get album details including all of its tracks."""
        params: dict[str, Any] = {"market": market} if market else {}
        response = await self._api_request(
            "GET",
            f"/albums/{album_id}",
            access_token,
            operation="get_album",
            params=params or None,
        )
        data = _json_object(response, "get_album")
        tracks_obj = data.get("tracks") or {}
        raw_tracks: list[dict[str, Any]] = [t for t in tracks_obj.get("items") or [] if t]
        total = int(tracks_obj.get("total") or len(raw_tracks))

        while tracks_obj.get("next") and len(raw_tracks) < total:
            page_params: dict[str, Any] = {"limit": 50, "offset": len(raw_tracks)}
            if market:
                page_params["market"] = market
            page = await self._api_request(
                "GET",
                f"/albums/{album_id}/tracks",
                access_token,
                operation="get_album_tracks",
                params=page_params,
            )
            tracks_obj = _json_object(page, "get_album_tracks")
            page_items = [t for t in tracks_obj.get("items") or [] if t]
            if not page_items:
                break
            raw_tracks.extend(page_items)

        return _convert_album_detail(data, raw_tracks)

    async def __aenter__(self) -> "SpotifyClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()


# =============================================================================
# RESPONSE NARROWING
# =============================================================================


def _parse_retry_after(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _json_object(response: httpx.Response, operation: str) -> dict[str, Any]:
    """Body of a successful response, which must be a JSON object."""
    data = _safe_json(response)
    if not isinstance(data, dict):
        logger.error(
            "Spotify %s returned HTTP %d with a non-object body (%s)",
            operation,
            response.status_code,
            response.headers.get("Content-Type", "no content type"),
        )
        raise ExternalServiceError(
            f"Spotify {operation} returned an unreadable response body.",
            http_status=response.status_code,
            operation=operation,
        )
    return data


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a Spotify error body."""
    data = _safe_json(response)
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return str(data.get("error_description") or error)
    return response.reason_phrase or "unknown error"


def _snapshot_id(response: httpx.Response) -> str | None:
    data = _safe_json(response)
    if isinstance(data, dict):
        snapshot = data.get("snapshot_id")
        return str(snapshot) if snapshot else None
    return None


def _require(data: dict[str, Any], key: str, kind: str) -> str:
    value = data.get(key)
    if not value:
        raise ExternalServiceError(f"Malformed Spotify {kind}: missing '{key}'")
    return str(value)


def _image_url(images: list[dict[str, Any]] | None) -> str | None:
    if not images:
        return None
    return images[0].get("url")


def _artist_names(artists: list[dict[str, Any]] | None) -> list[str]:
    return [a["name"] for a in artists or [] if a and a.get("name")]


def _convert_token(data: dict[str, Any]) -> TokenResponse:
    access_token = data.get("access_token")
    if not access_token:
        raise ExternalServiceError("Malformed Spotify token response: missing 'access_token'")
    expires_in = data.get("expires_in")
    return TokenResponse(
        access_token=str(access_token),
        refresh_token=data.get("refresh_token") or None,
        expires_in=int(expires_in) if isinstance(expires_in, int | float) else 3600,
        token_type=data.get("token_type", "Bearer"),
        scope=data.get("scope"),
    )


def _convert_user(data: dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=_require(data, "id", "user profile"),
        display_name=data.get("display_name"),
        email=data.get("email"),
        country=data.get("country"),
        product=data.get("product"),
        uri=data.get("uri"),
        image_url=_image_url(data.get("images")),
    )


def _convert_playlist(data: dict[str, Any]) -> PlaylistSummary:
    playlist_id = _require(data, "id", "playlist")
    tracks = data.get("tracks") or {}
    return PlaylistSummary(
        id=playlist_id,
        uri=data.get("uri") or f"spotify:playlist:{playlist_id}",
        name=data.get("name") or "",
        owner_id=(data.get("owner") or {}).get("id"),
        public=data.get("public"),
        collaborative=bool(data.get("collaborative")),
        total_tracks=int(tracks.get("total") or 0),
        snapshot_id=data.get("snapshot_id"),
    )


def _convert_track_ref(data: dict[str, Any] | None) -> TrackRef | None:
    if not isinstance(data, dict):
        return None
    linked_from = data.get("linked_from") or {}
    return TrackRef(
        uri=data.get("uri"),
        id=data.get("id"),
        name=data.get("name"),
        linked_from_uri=linked_from.get("uri"),
        is_local=bool(data.get("is_local")),
    )


def _convert_track(data: dict[str, Any], album_id: str | None = None) -> TrackResult:
    album = data.get("album") or {}
    linked_from = data.get("linked_from") or {}
    return TrackResult(
        id=data.get("id") or "",
        uri=data.get("uri") or "",
        name=data.get("name") or "",
        artist_names=_artist_names(data.get("artists")),
        album_id=album.get("id") or album_id,
        album_name=album.get("name"),
        duration_ms=int(data.get("duration_ms") or 0),
        explicit=bool(data.get("explicit")),
        track_number=data.get("track_number"),
        image_url=_image_url(album.get("images")),
        linked_from_uri=linked_from.get("uri"),
        is_playable=data.get("is_playable"),
    )


def _convert_album(data: dict[str, Any]) -> AlbumResult:
    album_id = _require(data, "id", "album")
    return AlbumResult(
        id=album_id,
        uri=data.get("uri") or f"spotify:album:{album_id}",
        name=data.get("name") or "",
        album_type=data.get("album_type"),
        artist_names=_artist_names(data.get("artists")),
        release_date=data.get("release_date"),
        total_tracks=int(data.get("total_tracks") or 0),
        image_url=_image_url(data.get("images")),
    )


def _convert_album_detail(
    data: dict[str, Any], raw_tracks: list[dict[str, Any]]
) -> AlbumDetail:
    album = _convert_album(data)
    return AlbumDetail(
        id=album.id,
        uri=album.uri,
        name=album.name,
        album_type=album.album_type,
        artist_names=album.artist_names,
        release_date=album.release_date,
        total_tracks=album.total_tracks or len(raw_tracks),
        image_url=album.image_url,
        label=data.get("label"),
        tracks=[_convert_track(t, album_id=album.id) for t in raw_tracks],
    )


def _convert_playback_state(data: dict[str, Any]) -> PlaybackState:
    context = data.get("context") or {}
    device = data.get("device") or {}
    progress = data.get("progress_ms")
    return PlaybackState(
        is_playing=bool(data.get("is_playing")),
        context_uri=context.get("uri"),
        context_type=context.get("type"),
        item=_convert_track_ref(data.get("item")),
        item_type=data.get("currently_playing_type"),
        progress_ms=int(progress) if isinstance(progress, int | float) else None,
        device_name=device.get("name"),
        raw=data,
    )
