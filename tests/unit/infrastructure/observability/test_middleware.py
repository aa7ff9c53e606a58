"""Tests for request logging middleware."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from yfitops.infrastructure.observability import RequestLoggingMiddleware, get_correlation_id


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        return {"correlation_id": get_correlation_id()}

    return app


class TestRequestLoggingMiddleware:
    def test_echoes_incoming_correlation_id(self) -> None:
        client = TestClient(_app())

        response = client.get("/ping", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"
        assert response.json() == {"correlation_id": "abc-123"}

    def test_generates_correlation_id(self) -> None:
        client = TestClient(_app())

        response = client.get("/ping")

        assert response.headers["X-Correlation-ID"]
        assert response.json()["correlation_id"] == response.headers["X-Correlation-ID"]
