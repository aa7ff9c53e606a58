"""Tests for the queue playlist find-or-create logic."""

from unittest.mock import AsyncMock

import pytest

from yfitops.application.services.queue import QueuePlaylistResolver
from yfitops.application.services.session_manager import SessionManager
from yfitops.config import QueueSettings
from yfitops.domain.dtos import PlaylistPage
from yfitops.domain.exceptions import AuthenticationError


def _page(items, total: int, offset: int = 0) -> PlaylistPage:
    return PlaylistPage(items=items, total=total, offset=offset, limit=50)


@pytest.fixture
def resolver(
    mock_client: AsyncMock, session: SessionManager, queue_settings: QueueSettings
) -> QueuePlaylistResolver:
    return QueuePlaylistResolver(mock_client, session, queue_settings)


class TestEnsureQueuePlaylist:
    async def test_reuses_existing_playlist(
        self, resolver: QueuePlaylistResolver, mock_client: AsyncMock, playlist_factory
    ) -> None:
        mock_client.get_user_playlists.return_value = _page(
            [playlist_factory("other", name="Road Trip"), playlist_factory("q1")], total=2
        )

        handle = await resolver.ensure_queue_playlist()

        assert handle.playlist_id == "q1"
        assert handle.playlist_uri == "spotify:playlist:q1"
        mock_client.create_playlist.assert_not_awaited()

    async def test_second_call_makes_no_network_calls(
        self, resolver: QueuePlaylistResolver, mock_client: AsyncMock, playlist_factory
    ) -> None:
        mock_client.get_user_playlists.return_value = _page([playlist_factory("q1")], total=1)

        first = await resolver.ensure_queue_playlist()
        calls_after_first = len(mock_client.mock_calls)
        second = await resolver.ensure_queue_playlist()

        assert first == second
        assert len(mock_client.mock_calls) == calls_after_first
        mock_client.get_user_playlists.assert_awaited_once()

    async def test_ignores_same_name_owned_by_someone_else(
        self, resolver: QueuePlaylistResolver, mock_client: AsyncMock, playlist_factory
    ) -> None:
        mock_client.get_user_playlists.return_value = _page(
            [playlist_factory("followed", owner_id="someone-else")], total=1
        )
        mock_client.create_playlist.return_value = playlist_factory("new-q")

        handle = await resolver.ensure_queue_playlist()

        assert handle.playlist_id == "new-q"
        mock_client.create_playlist.assert_awaited_once_with(
            user_id="user1",
            name="Yfitops Queue",
            access_token="access-1",
            description="queue",
            public=False,
            collaborative=False,
        )

    async def test_first_match_in_scan_order_wins(
        self, resolver: QueuePlaylistResolver, mock_client: AsyncMock, playlist_factory
    ) -> None:
        mock_client.get_user_playlists.return_value = _page(
            [playlist_factory("dup-1"), playlist_factory("dup-2")], total=2
        )

        handle = await resolver.ensure_queue_playlist()

        assert handle.playlist_id == "dup-1"

    async def test_pages_until_found(
        self, resolver: QueuePlaylistResolver, mock_client: AsyncMock, playlist_factory
    ) -> None:
        full_page = [playlist_factory(f"p{i}", name=f"Mix {i}") for i in range(50)]
        mock_client.get_user_playlists.side_effect = [
            _page(full_page, total=51),
            _page([playlist_factory("q-late")], total=51, offset=50),
        ]

        handle = await resolver.ensure_queue_playlist()

        assert handle.playlist_id == "q-late"
        offsets = [c.kwargs["offset"] for c in mock_client.get_user_playlists.await_args_list]
        assert offsets == [0, 50]

    async def test_short_page_stops_scan(
        self, resolver: QueuePlaylistResolver, mock_client: AsyncMock, playlist_factory
    ) -> None:
        # total claims more, but a short page means the listing is exhausted
        mock_client.get_user_playlists.return_value = _page(
            [playlist_factory("x", name="Other")], total=500
        )
        mock_client.create_playlist.return_value = playlist_factory("new-q")

        await resolver.ensure_queue_playlist()

        mock_client.get_user_playlists.assert_awaited_once()

    async def test_forget_forces_new_lookup(
        self, resolver: QueuePlaylistResolver, mock_client: AsyncMock, playlist_factory
    ) -> None:
        mock_client.get_user_playlists.return_value = _page([playlist_factory("q1")], total=1)
        await resolver.ensure_queue_playlist()

        resolver.forget()
        await resolver.ensure_queue_playlist()

        assert mock_client.get_user_playlists.await_count == 2
        assert mock_client.get_me.await_count == 2

    async def test_requires_session(
        self, mock_client: AsyncMock, queue_settings: QueueSettings
    ) -> None:
        resolver = QueuePlaylistResolver(mock_client, SessionManager(mock_client), queue_settings)

        with pytest.raises(AuthenticationError):
            await resolver.ensure_queue_playlist()

        mock_client.get_user_playlists.assert_not_awaited()
