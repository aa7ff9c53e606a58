"""Spotify session and catalog endpoints.

Hey future me - there are TWO ways to log in:
1. POST /spotify/login - waits (up to AUTH_TIMEOUT_SECONDS) for the OAuth redirect.
   With AUTH_OPEN_BROWSER the authorize page opens on the machine running the server.
2. GET /spotify/authorize-url - returns the URL for the client to open; the
   redirect to /callback (or /spotify/callback) finishes the login.
The redirect URI registered with Spotify must point at one of the callback routes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from yfitops.api.dependencies import get_spotify_service
from yfitops.api.schemas import (
    AuthorizeUrlResponse,
    CallbackResponse,
    SpotifyStatusResponse,
)
from yfitops.application.services.spotify_service import SpotifyService
from yfitops.domain.dtos import AlbumDetail, SearchResults, UserProfile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/spotify", tags=["Spotify"])

# Mounted at the root so the default redirect URI (http://localhost:4350/callback) works
callback_router = APIRouter(tags=["Spotify"])

ServiceDep = Annotated[SpotifyService, Depends(get_spotify_service)]


@router.get("/status", response_model=SpotifyStatusResponse)
async def get_status(service: ServiceDep) -> SpotifyStatusResponse:
    """Report whether credentials are set and a session exists."""
    configured = await service.is_configured()
    authenticated = await service.is_authenticated() if configured else False
    return SpotifyStatusResponse(configured=configured, authenticated=authenticated)


@router.post("/login")
async def login(service: ServiceDep) -> UserProfile:
    """Log in and wait for the OAuth redirect."""
    return await service.login()


@router.get("/authorize-url", response_model=AuthorizeUrlResponse)
async def get_authorize_url(service: ServiceDep) -> AuthorizeUrlResponse:
    """Start a login and return the Spotify authorize URL."""
    result = await service.begin_login()
    return AuthorizeUrlResponse(
        authorization_url=result.authorization_url, state=result.state
    )


async def _handle_callback(request: Request, service: SpotifyService) -> CallbackResponse:
    user = await service.complete_login(str(request.url))
    return CallbackResponse(user=user)


@router.get("/callback", response_model=CallbackResponse)
async def spotify_callback(request: Request, service: ServiceDep) -> CallbackResponse:
    """Receive the OAuth redirect."""
    return await _handle_callback(request, service)


@callback_router.get("/callback", response_model=CallbackResponse)
async def root_callback(request: Request, service: ServiceDep) -> CallbackResponse:
    """Receive the OAuth redirect on the default redirect URI."""
    return await _handle_callback(request, service)


@router.get("/me")
async def get_current_user(service: ServiceDep) -> UserProfile:
    return await service.get_current_user()


@router.get("/search")
async def search(
    service: ServiceDep,
    query: Annotated[str, Query(description="Search text")] = "",
) -> SearchResults:
    """Search tracks and albums (single releases are left out)."""
    return await service.search(query)


@router.get("/albums/{album_id}")
async def get_album(album_id: str, service: ServiceDep) -> AlbumDetail:
    return await service.get_album(album_id)
