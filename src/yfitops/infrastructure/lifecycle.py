"""Application lifecycle management for startup and shutdown tasks."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from yfitops.application.services.spotify_service import build_spotify_service
from yfitops.config import get_settings
from yfitops.infrastructure.observability import configure_logging

logger = logging.getLogger(__name__)


# Listen future me, everything before `yield` runs at STARTUP and everything after at
# SHUTDOWN. The SpotifyService (and with it the httpx client, the session and the
# cached queue playlist) lives exactly as long as the app. Missing credentials do NOT
# stop startup: the service answers every command with ConfigurationError (503) instead,
# so /api/spotify/status can still tell the user what's wrong.
# Settings come from app.state (set by create_app), falling back to the environment.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles:
    - Logging configuration
    - SpotifyService construction (stored on app.state.spotify_service)
    - HTTP client cleanup on shutdown
    """
    settings = getattr(app.state, "settings", None) or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    service = build_spotify_service(settings)
    app.state.spotify_service = service
    if settings.spotify.is_configured:
        logger.info(
            "Spotify configured (redirect URI: %s, search %s)",
            settings.spotify.redirect_uri,
            "enabled" if settings.spotify.enable_search else "disabled",
        )
    else:
        logger.warning(
            "Spotify credentials missing: set SPOTIFY_CLIENT_ID, "
            "SPOTIFY_CLIENT_SECRET and SPOTIFY_REDIRECT_URI"
        )

    try:
        yield
    finally:
        logger.info("Shutting down application")
        await service.close()
        app.state.spotify_service = None
        logger.info("Spotify client closed")
