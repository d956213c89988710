"""Unit tests for the health endpoint."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from jukebox import __version__
from jukebox.api.dependencies.scheduler import get_scheduler_config
from jukebox.api.routes import health
from jukebox.config.scheduler_config import SchedulerConfig


def _client(store_backend: str) -> TestClient:
    app = FastAPI()
    app.include_router(health.router)
    app.dependency_overrides[get_scheduler_config] = lambda: SchedulerConfig(
        store_backend=store_backend
    )
    return TestClient(app)


class _UnreachableSession:
    async def __aenter__(self):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError())

    async def __aexit__(self, *exc_info) -> None:
        return None


class TestHealthRoute:
    """Tests for GET /v1/health."""

    def test_memory_backend_healthy(self) -> None:
        response = _client("memory").get("/v1/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "version": __version__,
            "store_backend": "memory",
            "store_reachable": True,
        }

    def test_unreachable_postgres_degraded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            health, "get_session_factory", lambda: lambda: _UnreachableSession()
        )

        response = _client("postgres").get("/v1/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "degraded"
        assert body["store_reachable"] is False
