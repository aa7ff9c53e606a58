"""Application settings loaded from environment variables and .env."""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SCOPES = " ".join(
    [
        "user-read-email",
        "user-read-private",
        "playlist-read-private",
        "playlist-modify-private",
        "user-read-playback-state",
        "user-read-currently-playing",
    ]
)


class SpotifySettings(BaseModel):
    """Spotify application credentials and catalog options.

    Hey future me - client_id, client_secret AND redirect_uri are all required!
    If ANY of them is blank, is_configured is False and every command fails
    with ConfigurationError. There's no partial mode.
    """

    client_id: str = Field(default="", description="Spotify application client ID")
    client_secret: str = Field(default="", description="Spotify application client secret")
    redirect_uri: str = Field(
        default="http://localhost:4350/callback",
        description="OAuth redirect URI registered with the Spotify app",
    )
    scopes: str = Field(default=DEFAULT_SCOPES, description="Space-separated OAuth scopes")
    market: str = Field(default="from_token", description="Market for search/album lookups")
    enable_search: bool = Field(default=True, description="Allow catalog search and album lookups")
    search_limit: int = Field(default=20, ge=1, le=50, description="Results per search type")
    auth_timeout_seconds: float = Field(
        default=300.0, gt=0, description="How long login waits for the OAuth callback"
    )
    auth_open_browser: bool = Field(
        default=True, description="Open the authorize URL in a local browser on login"
    )

    @property
    def is_configured(self) -> bool:
        """True when all three credentials are present."""
        return bool(
            self.client_id.strip()
            and self.client_secret.strip()
            and self.redirect_uri.strip()
        )


class QueueSettings(BaseModel):
    """Settings for the hidden queue playlist."""

    playlist_name: str = Field(default="Yfitops Queue")
    playlist_description: str = Field(
        default="Managed by Yfitops. Tracks queued from the app land here."
    )


class ApiSettings(BaseModel):
    """HTTP server settings."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=4350, ge=1, le=65535)


class Settings(BaseSettings):
    """Root settings object.

    Environment names are flat (SPOTIFY_CLIENT_ID, QUEUE_PLAYLIST_NAME, ...)
    so the same .env works for every entry point. The ``spotify``, ``queue``
    and ``api`` properties group them for the components that consume them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="yfitops")
    log_level: str = Field(default="INFO")
    log_json_format: bool = Field(default=False)

    spotify_client_id: str = Field(default="")
    spotify_client_secret: str = Field(default="")
    spotify_redirect_uri: str = Field(default="http://localhost:4350/callback")
    spotify_scopes: str = Field(default=DEFAULT_SCOPES)
    spotify_market: str = Field(default="from_token")
    enable_search: bool = Field(default=True)
    search_limit: int = Field(default=20, ge=1, le=50)
    auth_timeout_seconds: float = Field(default=300.0, gt=0)
    auth_open_browser: bool = Field(default=True)

    queue_playlist_name: str = Field(default="Yfitops Queue")
    queue_playlist_description: str = Field(
        default="Managed by Yfitops. Tracks queued from the app land here."
    )

    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=4350, ge=1, le=65535)

    @property
    def spotify(self) -> SpotifySettings:
        """Spotify settings view."""
        return SpotifySettings(
            client_id=self.spotify_client_id,
            client_secret=self.spotify_client_secret,
            redirect_uri=self.spotify_redirect_uri,
            scopes=self.spotify_scopes,
            market=self.spotify_market,
            enable_search=self.enable_search,
            search_limit=self.search_limit,
            auth_timeout_seconds=self.auth_timeout_seconds,
            auth_open_browser=self.auth_open_browser,
        )

    @property
    def queue(self) -> QueueSettings:
        """Queue playlist settings view."""
        return QueueSettings(
            playlist_name=self.queue_playlist_name,
            playlist_description=self.queue_playlist_description,
        )

    @property
    def api(self) -> ApiSettings:
        """HTTP server settings view."""
        return ApiSettings(host=self.api_host, port=self.api_port)


# Hey future me - settings are cached for the process lifetime! Tests that need
# different values should build Settings(...) directly or call
# get_settings.cache_clear() after patching the environment.
@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
