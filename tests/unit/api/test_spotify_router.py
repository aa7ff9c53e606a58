"""Tests for the Spotify session and catalog endpoints."""

from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from yfitops.application.services.spotify_auth_service import AuthUrlResult
from yfitops.domain.dtos import AlbumDetail, AlbumResult, SearchResults, TrackResult, UserProfile
from yfitops.domain.exceptions import AuthenticationError, ConfigurationError


class TestStatus:
    def test_configured_and_authenticated(
        self, client: TestClient, mock_service: AsyncMock
    ) -> None:
        mock_service.is_configured.return_value = True
        mock_service.is_authenticated.return_value = True

        response = client.get("/api/spotify/status")

        assert response.status_code == 200
        assert response.json() == {"configured": True, "authenticated": True}

    def test_not_configured_skips_session_check(
        self, client: TestClient, mock_service: AsyncMock
    ) -> None:
        mock_service.is_configured.return_value = False

        response = client.get("/api/spotify/status")

        assert response.json() == {"configured": False, "authenticated": False}
        mock_service.is_authenticated.assert_not_awaited()


class TestLogin:
    def test_authorize_url(self, client: TestClient, mock_service: AsyncMock) -> None:
        mock_service.begin_login.return_value = AuthUrlResult(
            authorization_url="https://accounts.spotify.com/authorize?state=s", state="s"
        )

        response = client.get("/api/spotify/authorize-url")

        assert response.status_code == 200
        assert response.json()["state"] == "s"

    def test_root_callback_passes_full_url(
        self, client: TestClient, mock_service: AsyncMock
    ) -> None:
        mock_service.complete_login.return_value = UserProfile(id="user1")

        response = client.get("/callback?code=abc&state=s")

        assert response.status_code == 200
        assert response.json()["user"]["id"] == "user1"
        callback_url = mock_service.complete_login.await_args.args[0]
        assert callback_url.endswith("/callback?code=abc&state=s")

    def test_callback_rejected(self, client: TestClient, mock_service: AsyncMock) -> None:
        mock_service.complete_login.side_effect = AuthenticationError(
            "Authorization state mismatch."
        )

        response = client.get("/api/spotify/callback?code=abc&state=forged")

        assert response.status_code == 401
        assert response.json() == {"detail": "Authorization state mismatch."}

    def test_login_not_configured(self, client: TestClient, mock_service: AsyncMock) -> None:
        mock_service.login.side_effect = ConfigurationError()

        response = client.post("/api/spotify/login")

        assert response.status_code == 503


class TestCatalog:
    def test_me(self, client: TestClient, mock_service: AsyncMock) -> None:
        mock_service.get_current_user.return_value = UserProfile(id="user1", display_name="Me")

        response = client.get("/api/spotify/me")

        assert response.json()["display_name"] == "Me"

    def test_search(self, client: TestClient, mock_service: AsyncMock) -> None:
        mock_service.search.return_value = SearchResults(
            tracks=[TrackResult(id="t", uri="spotify:track:t", name="T", artist_names=["A"])],
            albums=[AlbumResult(id="a", uri="spotify:album:a", name="LP")],
        )

        response = client.get("/api/spotify/search", params={"query": "daft punk"})

        assert response.status_code == 200
        body = response.json()
        assert body["tracks"][0]["artist_names"] == ["A"]
        assert body["albums"][0]["id"] == "a"
        mock_service.search.assert_awaited_once_with("daft punk")

    def test_album(self, client: TestClient, mock_service: AsyncMock) -> None:
        mock_service.get_album.return_value = AlbumDetail(
            id="a1", uri="spotify:album:a1", name="LP", label="Label"
        )

        response = client.get("/api/spotify/albums/a1")

        assert response.json()["label"] == "Label"
        mock_service.get_album.assert_awaited_once_with("a1")
