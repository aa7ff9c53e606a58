"""Dependency injection for API endpoints."""

from typing import cast

from fastapi import HTTPException, Request

from yfitops.application.services.spotify_service import SpotifyService


# Hey future me - the service is built in the lifespan (see infrastructure/lifecycle.py)
# and parked on app.state. If it isn't there, startup didn't finish - answer 503 instead
# of blowing up with an AttributeError. Tests override this dependency with a mock.
def get_spotify_service(request: Request) -> SpotifyService:
    """Get the SpotifyService from app state.

    Raises:
        HTTPException: 503 if the service is not initialized
    """
    service = getattr(request.app.state, "spotify_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Spotify service not initialized")
    return cast(SpotifyService, service)
