"""
Health check tests for the API.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness_check(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/ready", headers={"X-Request-ID": "ready-probe-1"})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["checks"]["db"]["status"] == "ok"
    assert data["checks"]["redis"]["message"] == "Not enabled"
    assert data["request_id"] == "ready-probe-1"
    assert response.headers["X-Request-ID"] == "ready-probe-1"


@pytest.mark.asyncio
async def test_root_endpoint(async_client: AsyncClient) -> None:
    response = await async_client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert "version" in data
    assert data["docs_url"] == "/docs"


@pytest.mark.asyncio
async def test_security_headers(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "Cache-Control" not in response.headers


@pytest.mark.asyncio
async def test_unsafe_request_id_is_replaced(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/health", headers={"X-Request-ID": "bad id with spaces"})

    assert response.headers["X-Request-ID"] != "bad id with spaces"
    assert len(response.headers["X-Request-ID"]) == 32


@pytest.mark.asyncio
async def test_readiness_down_when_redis_required(async_client: AsyncClient, monkeypatch) -> None:
    from quizdesk.api.v1.endpoints import health
    from quizdesk.core.config import settings

    monkeypatch.setattr(settings, "REDIS_ENABLED", True)
    monkeypatch.setattr(settings, "REDIS_REQUIRED", True)
    monkeypatch.setattr(health, "is_redis_available", lambda: False)

    response = await async_client.get("/api/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "down"
    assert response.json()["checks"]["redis"]["status"] == "down"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/does-not-exist")

    assert response.status_code == 404
    data = response.json()
    assert data["error_code"] == "NOT_FOUND"
    assert data["request_id"] == response.headers["X-Request-ID"]
