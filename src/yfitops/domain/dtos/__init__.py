"""
Data Transfer Objects for the Spotify catalog and the queue engine.

Hey future me - these DTOs are the ONLY shapes that leave the Spotify adapter!
Raw JSON from the Web API gets narrowed in spotify_client.py (_convert_* helpers)
and everything above the adapter works with these types. The only raw dict that
survives is PlaybackContext.raw, which is handed to the UI untouched.

Flow: Spotify JSON -> SpotifyClient._convert_*() -> DTO -> queue services -> API
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

# =============================================================================
# AUTH / SESSION
# =============================================================================


@dataclass(frozen=True)
class TokenResponse:
    """Token endpoint response (authorization_code or refresh_token grant).

    Hey future me - refresh_token is often None on refresh! Spotify only rotates
    it sometimes. SessionManager keeps the old one in that case.
    """

    access_token: str
    refresh_token: str | None = None
    expires_in: int = 3600
    token_type: str = "Bearer"
    scope: str | None = None


@dataclass(frozen=True)
class Session:
    """Current OAuth credentials, owned by SessionManager."""

    access_token: str
    expires_at: datetime
    refresh_token: str | None = None
    scope: frozenset[str] = field(default_factory=frozenset)

    def expires_within(self, seconds: float, now: datetime | None = None) -> bool:
        """True if the access token expires in less than ``seconds``."""
        current = now or datetime.now(UTC)
        return current + timedelta(seconds=seconds) >= self.expires_at


@dataclass(frozen=True)
class AuthorizationCode:
    """Code + state captured from the OAuth redirect."""

    code: str
    state: str


# =============================================================================
# CATALOG
# =============================================================================


@dataclass(frozen=True)
class UserProfile:
    """Current user profile (GET /me)."""

    id: str
    display_name: str | None = None
    email: str | None = None
    country: str | None = None
    product: str | None = None
    uri: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class TrackRef:
    """A track as it appears inside a playlist item or playback state.

    linked_from_uri is set when Spotify relinked the track to a regional
    substitute: ``uri`` is what plays, ``linked_from_uri`` is what was stored.
    """

    uri: str | None
    id: str | None = None
    name: str | None = None
    linked_from_uri: str | None = None
    is_local: bool = False

    def matches(self, target_uri: str) -> bool:
        """True if either the served or the original URI equals target_uri."""
        return target_uri in (self.uri, self.linked_from_uri)


@dataclass(frozen=True)
class PlaylistItem:
    """One row of a playlist (track may be None for removed/unavailable items)."""

    track: TrackRef | None
    added_at: str | None = None


@dataclass(frozen=True)
class PlaylistTracksPage:
    """Page of GET /playlists/{id}/tracks."""

    items: list[PlaylistItem]
    total: int
    offset: int
    limit: int
    next: str | None = None


@dataclass(frozen=True)
class PlaylistSummary:
    """Playlist metadata without tracks (GET /me/playlists item, POST create)."""

    id: str
    uri: str
    name: str
    owner_id: str | None = None
    public: bool | None = None
    collaborative: bool = False
    total_tracks: int = 0
    snapshot_id: str | None = None


@dataclass(frozen=True)
class PlaylistPage:
    """Page of GET /me/playlists."""

    items: list[PlaylistSummary]
    total: int
    offset: int
    limit: int
    next: str | None = None


@dataclass(frozen=True)
class PlaybackState:
    """Narrowed GET /me/player response."""

    is_playing: bool
    context_uri: str | None
    context_type: str | None
    item: TrackRef | None
    item_type: str | None = None
    progress_ms: int | None = None
    device_name: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TrackResult:
    """Track as returned by search and album lookups."""

    id: str
    uri: str
    name: str
    artist_names: list[str] = field(default_factory=list)
    album_id: str | None = None
    album_name: str | None = None
    duration_ms: int = 0
    explicit: bool = False
    track_number: int | None = None
    image_url: str | None = None
    linked_from_uri: str | None = None
    is_playable: bool | None = None


@dataclass(frozen=True)
class AlbumResult:
    """Album as returned by search."""

    id: str
    uri: str
    name: str
    album_type: str | None = None
    artist_names: list[str] = field(default_factory=list)
    release_date: str | None = None
    total_tracks: int = 0
    image_url: str | None = None


@dataclass(frozen=True)
class AlbumDetail:
    """Full album (GET /albums/{id}) including its first page of tracks."""

    id: str
    uri: str
    name: str
    album_type: str | None = None
    artist_names: list[str] = field(default_factory=list)
    release_date: str | None = None
    total_tracks: int = 0
    image_url: str | None = None
    label: str | None = None
    tracks: list[TrackResult] = field(default_factory=list)

    @property
    def playable_uris(self) -> list[str]:
        """URIs to queue for this album, relinked originals as fallback."""
        uris = [track.uri or track.linked_from_uri or "" for track in self.tracks]
        return [uri for uri in uris if uri]


@dataclass(frozen=True)
class SearchResults:
    """Combined search results."""

    tracks: list[TrackResult] = field(default_factory=list)
    albums: list[AlbumResult] = field(default_factory=list)


# =============================================================================
# QUEUE ENGINE
# =============================================================================


@dataclass(frozen=True)
class QueuePlaylistHandle:
    """Identifier of the hidden queue playlist."""

    playlist_id: str
    playlist_uri: str

    @property
    def web_url(self) -> str:
        """open.spotify.com link for the queue playlist."""
        return f"https://open.spotify.com/playlist/{self.playlist_id}"


@dataclass(frozen=True)
class AppendResult:
    """Outcome of one append call.

    range_start is the playlist total BEFORE the append (tracks always land at
    the tail), or None when nothing was appended.
    """

    playlist_id: str
    appended_count: int
    range_start: int | None
    range_length: int
    snapshot_id: str | None


@dataclass(frozen=True)
class PlaybackContext:
    """What the listener is playing right now, relative to the queue.

    Hey future me - error is set (and the URIs are None) when the playback
    fetch failed. Playback info is best effort and must never block queueing.
    """

    context_uri: str | None
    current_track_uri: str | None
    raw: dict[str, Any] = field(default_factory=dict)
    context_type: str | None = None
    is_playing: bool = False
    error: str | None = None
    matches_queue: bool | None = None


@dataclass(frozen=True)
class ReorderResult:
    """The move actually executed by the reorder engine."""

    playlist_id: str
    range_start: int
    range_length: int
    insert_before: int
    current_index: int
    snapshot_id: str | None


@dataclass(frozen=True)
class QueueOutcome:
    """Result of queueing tracks (append, optional reorder, playback check)."""

    source: str
    mode: str
    uris: list[str]
    playlist_id: str
    playlist_uri: str
    playlist_url: str
    append_result: AppendResult
    reorder_result: ReorderResult | None = None
    playback: PlaybackContext | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    entity_name: str | None = None


__all__ = [
    "AlbumDetail",
    "AlbumResult",
    "AppendResult",
    "AuthorizationCode",
    "PlaybackContext",
    "PlaybackState",
    "PlaylistItem",
    "PlaylistPage",
    "PlaylistSummary",
    "PlaylistTracksPage",
    "QueueOutcome",
    "QueuePlaylistHandle",
    "ReorderResult",
    "SearchResults",
    "Session",
    "TokenResponse",
    "TrackRef",
    "TrackResult",
    "UserProfile",
]
