"""Unit tests for health endpoints."""

import pytest
from fastapi.testclient import TestClient

from order_sync_service.api.v1 import health


def test_health_check(client: TestClient) -> None:
    """Test basic health check returns healthy status."""
    response = client.get("/api/v1/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert "environment" in data
    assert "timestamp" in data
    assert set(data["dependencies"]) == {"postgres", "redis"}


def test_liveness_check(client: TestClient) -> None:
    """Test liveness check returns alive status."""
    response = client.get("/api/v1/health/live")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "alive"


def test_readiness_check_all_up(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """Readiness is true only when every dependency answers."""

    async def up() -> bool:
        return True

    monkeypatch.setattr(health, "check_postgres", up)
    monkeypatch.setattr(health, "check_redis", up)

    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200

    data = response.json()
    assert data["ready"] is True
    assert data["checks"] == {"postgres": True, "redis": True}


def test_readiness_check_redis_down(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """A failing dependency makes the service not ready."""

    async def up() -> bool:
        return True

    async def down() -> bool:
        return False

    monkeypatch.setattr(health, "check_postgres", up)
    monkeypatch.setattr(health, "check_redis", down)

    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200

    data = response.json()
    assert data["ready"] is False
    assert data["checks"]["redis"] is False


@pytest.mark.asyncio
async def test_check_redis_without_connection(monkeypatch: pytest.MonkeyPatch) -> None:
    """An unreachable Redis reports not ready instead of raising."""

    async def no_client() -> None:
        return None

    monkeypatch.setattr(health, "get_redis_client", no_client)

    assert await health.check_redis() is False
