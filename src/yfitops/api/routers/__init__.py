"""API router initialization."""

# Hey future me, api_router gets mounted at /api in main.py, so /queue/append becomes
# /api/queue/append. callback_router is mounted WITHOUT the prefix because the default
# Spotify redirect URI is http://localhost:4350/callback.

from fastapi import APIRouter

from yfitops.api.routers import health, queue, spotify
from yfitops.api.routers.spotify import callback_router

api_router = APIRouter()

api_router.include_router(spotify.router)
api_router.include_router(queue.router)
api_router.include_router(health.router)

__all__ = ["api_router", "callback_router"]
