"""FastAPI application entry point."""

import uvicorn
from fastapi import FastAPI

from yfitops import __version__
from yfitops.api import api_router, callback_router
from yfitops.api.exception_handlers import register_exception_handlers
from yfitops.config import Settings, get_settings
from yfitops.infrastructure.lifecycle import lifespan
from yfitops.infrastructure.observability import RequestLoggingMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Spotify queue management on top of a private queue playlist",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(callback_router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "yfitops.main:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
