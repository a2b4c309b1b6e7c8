"""Tests for token issue and the current user endpoint."""

import pytest
from httpx import ASGITransport, AsyncClient

from drambox.config import settings
from drambox.models import User


@pytest.mark.asyncio
async def test_login_with_email(unauthenticated_client: AsyncClient, test_user: User) -> None:
    response = await unauthenticated_client.post(
        "/api/auth/token",
        data={"username": "TEST@example.com", "password": "testpassword"},
    )
    assert response.status_code == 200
    token = response.json()
    assert token["token_type"] == "bearer"
    assert token["expires_in"] == 120 * 60

    response = await unauthenticated_client.get(
        "/api/auth/me",
        headers={"Authorization": f"Bearer {token['access_token']}"},
    )
    assert response.status_code == 200
    assert response.json()["username"] == "taster"
    assert response.json()["last_login"] is not None


@pytest.mark.asyncio
async def test_login_wrong_password(unauthenticated_client: AsyncClient, test_user: User) -> None:
    response = await unauthenticated_client.post(
        "/api/auth/token",
        data={"username": "test@example.com", "password": "nope"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_disabled_user_cannot_login(unauthenticated_client: AsyncClient, test_user: User) -> None:
    test_user.is_active = False
    await test_user.save()

    response = await unauthenticated_client.post(
        "/api/auth/token",
        data={"username": "test@example.com", "password": "testpassword"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token(unauthenticated_client: AsyncClient) -> None:
    response = await unauthenticated_client.get(
        "/api/auth/me",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401
    assert response.json()["reason"] == "unauthorized"
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_health(unauthenticated_client: AsyncClient) -> None:
    response = await unauthenticated_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_global_rate_limit(unauthenticated_client: AsyncClient, monkeypatch) -> None:
    """Test routes without their own limit still get the per-IP default."""
    from drambox.main import app, limiter

    monkeypatch.setattr(settings._config.server, "rate_limit_per_minute", 2)
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [(await client.get("/health")).status_code for _ in range(3)]
    finally:
        limiter.reset()

    assert statuses == [200, 200, 429]
