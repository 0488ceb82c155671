"""Tests for health, readiness, and version endpoints."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import workshop.health.router as health_router
from workshop.main import create_app


@pytest.mark.asyncio
class TestHealthEndpoints:
    async def test_health_returns_200(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_ready_checks_database(self, client):
        response = await client.get("/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"] == "ok"

    async def test_version(self, client):
        response = await client.get("/version")
        assert response.status_code == 200
        assert response.json()["version"] == "0.1.0"

    async def test_ready_reports_redis_disabled_when_unconfigured(self, client):
        data = (await client.get("/ready")).json()
        assert data["checks"]["redis"] == "disabled"
        assert data["status"] == "ready"


class _PingingRedis:
    async def ping(self):
        return True


@pytest.mark.asyncio
class TestReadinessWithRedis:
    @pytest_asyncio.fixture
    async def redis_client(self, settings, database):
        configured = settings.model_copy(update={"redis_url": "redis://localhost:6379/0"})
        app = create_app(configured, database=database)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac

    async def test_uninitialized_redis_degrades_readiness(self, redis_client):
        data = (await redis_client.get("/ready")).json()
        assert data["status"] == "degraded"
        assert data["checks"]["redis"] == "error: RuntimeError"

    async def test_reachable_redis(self, redis_client, monkeypatch):
        monkeypatch.setattr(health_router, "get_redis", lambda: _PingingRedis())
        data = (await redis_client.get("/ready")).json()
        assert data["status"] == "ready"
        assert data["checks"] == {"database": "ok", "redis": "ok"}
