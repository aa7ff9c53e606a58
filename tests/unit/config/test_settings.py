"""Tests for application settings."""

import pytest

from yfitops.config import Settings, SpotifySettings, get_settings
from yfitops.config.settings import DEFAULT_SCOPES


class TestSpotifySettings:
    """Test SpotifySettings.is_configured."""

    def test_defaults_are_not_configured(self) -> None:
        """Empty client credentials mean not configured."""
        settings = SpotifySettings()
        assert settings.redirect_uri == "http://localhost:4350/callback"
        assert settings.is_configured is False

    @pytest.mark.parametrize(
        ("client_id", "client_secret", "redirect_uri"),
        [
            ("", "secret", "http://localhost:4350/callback"),
            ("id", "  ", "http://localhost:4350/callback"),
            ("id", "secret", ""),
        ],
    )
    def test_any_missing_credential_means_not_configured(
        self, client_id: str, client_secret: str, redirect_uri: str
    ) -> None:
        settings = SpotifySettings(
            client_id=client_id, client_secret=client_secret, redirect_uri=redirect_uri
        )
        assert settings.is_configured is False

    def test_all_credentials_present(self) -> None:
        settings = SpotifySettings(client_id="id", client_secret="secret")
        assert settings.is_configured is True

    def test_default_scopes_cover_queue_operations(self) -> None:
        scopes = DEFAULT_SCOPES.split()
        assert "playlist-modify-private" in scopes
        assert "user-read-playback-state" in scopes


class TestSettingsFromEnvironment:
    """Test loading flat environment variables into the grouped views."""

    def test_environment_variables_feed_nested_views(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "env-id")
        monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("ENABLE_SEARCH", "false")
        monkeypatch.setenv("SEARCH_LIMIT", "7")
        monkeypatch.setenv("QUEUE_PLAYLIST_NAME", "My Queue")
        monkeypatch.setenv("API_PORT", "9000")

        settings = Settings(_env_file=None)

        assert settings.spotify.client_id == "env-id"
        assert settings.spotify.is_configured is True
        assert settings.spotify.enable_search is False
        assert settings.spotify.search_limit == 7
        assert settings.queue.playlist_name == "My Queue"
        assert settings.api.port == 9000

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("SPOTIFY_CLIENT_ID", "SPOTIFY_MARKET", "SEARCH_LIMIT", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.spotify.market == "from_token"
        assert settings.spotify.search_limit == 20
        assert settings.spotify.auth_timeout_seconds == 300.0
        assert settings.log_level == "INFO"
        assert settings.api.port == 4350

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
