"""Fixtures for router tests: the real app with a mocked SpotifyService."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from yfitops.api.dependencies import get_spotify_service
from yfitops.application.services.spotify_service import SpotifyService
from yfitops.config import Settings
from yfitops.main import create_app


@pytest.fixture
def mock_service() -> AsyncMock:
    return AsyncMock(spec=SpotifyService)


@pytest.fixture
def app(mock_service: AsyncMock) -> FastAPI:
    # No `with TestClient(...)`, so the lifespan (and the real service) never starts
    application = create_app(Settings(_env_file=None))
    application.dependency_overrides[get_spotify_service] = lambda: mock_service
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
