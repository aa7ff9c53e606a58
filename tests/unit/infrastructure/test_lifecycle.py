"""Tests for the application lifespan."""

from fastapi.testclient import TestClient

from yfitops.application.services.spotify_service import SpotifyService
from yfitops.config import Settings
from yfitops.main import create_app


def _settings(client_id: str = "id", client_secret: str = "secret") -> Settings:
    return Settings(
        _env_file=None, spotify_client_id=client_id, spotify_client_secret=client_secret
    )


class TestLifespan:
    def test_service_lives_on_app_state(self) -> None:
        app = create_app(_settings())

        with TestClient(app) as client:
            assert isinstance(app.state.spotify_service, SpotifyService)
            response = client.get("/api/spotify/status")
            assert response.json() == {"configured": True, "authenticated": False}

        assert app.state.spotify_service is None

    def test_explicit_settings_win_over_environment(self, mocker) -> None:
        env_settings = mocker.patch(
            "yfitops.infrastructure.lifecycle.get_settings",
            return_value=_settings(client_id="", client_secret=""),
        )
        app = create_app(_settings())

        with TestClient(app) as client:
            response = client.get("/api/spotify/status")

        assert response.json()["configured"] is True
        env_settings.assert_not_called()

    def test_missing_credentials_still_start(self) -> None:
        app = create_app(_settings(client_id="", client_secret=""))

        with TestClient(app) as client:
            response = client.post("/api/queue/ensure")

        assert response.status_code == 503
