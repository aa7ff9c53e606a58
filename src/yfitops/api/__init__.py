"""HTTP API package."""

from yfitops.api.routers import api_router, callback_router

__all__ = ["api_router", "callback_router"]
