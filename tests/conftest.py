"""Shared fixtures: configured settings, a fixed clock and catalog doubles."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from yfitops.application.services.session_manager import SessionManager
from yfitops.config import QueueSettings, SpotifySettings
from yfitops.domain.dtos import (
    PlaylistItem,
    PlaylistSummary,
    PlaylistTracksPage,
    TokenResponse,
    TrackRef,
    UserProfile,
)
from yfitops.domain.ports import ICatalogClient

QUEUE_ID = "queue123"
QUEUE_URI = f"spotify:playlist:{QUEUE_ID}"


class FixedClock:
    """Deterministic clock for token expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_playlist(
    playlist_id: str = QUEUE_ID,
    name: str = "Yfitops Queue",
    owner_id: str = "user1",
    total: int = 0,
    snapshot_id: str = "snap-0",
) -> PlaylistSummary:
    return PlaylistSummary(
        id=playlist_id,
        uri=f"spotify:playlist:{playlist_id}",
        name=name,
        owner_id=owner_id,
        public=False,
        collaborative=False,
        total_tracks=total,
        snapshot_id=snapshot_id,
    )


def make_tracks_page(
    uris: list[str],
    total: int,
    offset: int = 0,
    limit: int = 100,
    linked_from: dict[str, str] | None = None,
) -> PlaylistTracksPage:
    """Build a playlist page; linked_from maps a served URI to its original."""
    linked_from = linked_from or {}
    return PlaylistTracksPage(
        items=[
            PlaylistItem(track=TrackRef(uri=uri, linked_from_uri=linked_from.get(uri)))
            for uri in uris
        ],
        total=total,
        offset=offset,
        limit=limit,
    )


@pytest.fixture
def spotify_settings() -> SpotifySettings:
    """Configured Spotify settings."""
    return SpotifySettings(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost:4350/callback",
        auth_open_browser=False,
        auth_timeout_seconds=1.0,
    )


@pytest.fixture
def queue_settings() -> QueueSettings:
    return QueueSettings(playlist_name="Yfitops Queue", playlist_description="queue")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def mock_client() -> AsyncMock:
    """Catalog client double with the port's method signatures."""
    client = AsyncMock(spec=ICatalogClient)
    client.get_me.return_value = UserProfile(id="user1", display_name="Test User")
    return client


@pytest.fixture
def session(mock_client: AsyncMock, clock: FixedClock) -> SessionManager:
    """Session manager holding a fresh, valid token."""
    manager = SessionManager(mock_client, clock=clock)
    manager.store_token(
        TokenResponse(access_token="access-1", refresh_token="refresh-1", expires_in=3600)
    )
    return manager


@pytest.fixture
def playlist_factory():
    """Factory for PlaylistSummary objects (queue playlist by default)."""
    return make_playlist


@pytest.fixture
def tracks_page_factory():
    """Factory for PlaylistTracksPage objects."""
    return make_tracks_page
