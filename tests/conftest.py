"""Pytest configuration and fixtures for DramBox tests with real MongoDB."""

import os
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

# Must be set before drambox settings are first loaded
os.environ.setdefault("DRAMBOX_SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("DRAMBOX_CRON_SECRET", "test-cron-secret")

import pytest
import pytest_asyncio
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from drambox.database import get_document_models
from drambox.models import User
from drambox.services.auth import create_access_token, get_password_hash


# MongoDB connection URL for tests (can be overridden with env var)
TEST_MONGODB_URL = os.environ.get("TEST_MONGODB_URL", "mongodb://localhost:27017")

CRON_SECRET = os.environ["DRAMBOX_CRON_SECRET"]


def create_test_app():
    """Create a FastAPI app configured for testing (no database lifespan)."""
    from fastapi import FastAPI

    from drambox import __version__
    from drambox.main import app as main_app
    from drambox.main import dramboxerror_handler
    from drambox.routers import auth, cron
    from drambox.services.exceptions import DramBoxError

    # Empty lifespan for testing - we manage the database ourselves
    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        yield

    test_app = FastAPI(
        title="DramBox Test",
        version=__version__,
        lifespan=test_lifespan,
    )
    test_app.add_exception_handler(DramBoxError, dramboxerror_handler)

    for route in main_app.routes:
        test_app.routes.append(route)

    # Rate limits are exercised separately; keep them out of the way here
    for limiter in (main_app.state.limiter, auth.limiter, cron.limiter):
        limiter.enabled = False

    return test_app


_test_app = None


def get_test_app():
    """Get the test app singleton."""
    global _test_app
    if _test_app is None:
        _test_app = create_test_app()
    return _test_app


@pytest_asyncio.fixture(scope="function")
async def mongo_client():
    """Create a timezone-aware MongoDB client, skipping when no server answers."""
    client = AsyncMongoClient(
        TEST_MONGODB_URL,
        tz_aware=True,
        maxPoolSize=10,
        serverSelectionTimeoutMS=1500,
    )
    try:
        await client.admin.command("ping")
    except PyMongoError:
        await client.close()
        pytest.skip(f"MongoDB not available at {TEST_MONGODB_URL}")
    yield client
    await client.close()


@pytest_asyncio.fixture(scope="function")
async def init_test_db(mongo_client):
    """Initialize Beanie with a unique test database, dropped after the test."""
    db_name = f"test_drambox_{uuid.uuid4().hex[:8]}"
    db = mongo_client[db_name]

    await init_beanie(
        database=db,
        document_models=get_document_models(),
    )
    yield db

    await mongo_client.drop_database(db_name)


async def create_user(email: str, username: str, password: str = "testpassword") -> User:
    """Insert an active user."""
    user = User(
        email=email,
        username=username,
        hashed_password=get_password_hash(password),
        is_active=True,
    )
    await user.insert()
    return user


@pytest_asyncio.fixture(scope="function")
async def test_user(init_test_db) -> User:
    return await create_user("test@example.com", "taster")


@pytest_asyncio.fixture(scope="function")
async def other_user(init_test_db) -> User:
    return await create_user("other@example.com", "neighbour")


def _client_for(email: str | None, headers: dict | None = None) -> AsyncClient:
    headers = dict(headers or {})
    if email:
        headers["Authorization"] = f"Bearer {create_access_token(data={'sub': email})}"
    return AsyncClient(
        transport=ASGITransport(app=get_test_app()),
        base_url="http://test",
        headers=headers,
    )


@pytest_asyncio.fixture(scope="function")
async def client(test_user) -> AsyncGenerator[AsyncClient, None]:
    """Async test client authenticated as the test user."""
    async with _client_for(test_user.email) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def other_client(other_user) -> AsyncGenerator[AsyncClient, None]:
    """Async test client authenticated as a second user."""
    async with _client_for(other_user.email) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def unauthenticated_client(init_test_db) -> AsyncGenerator[AsyncClient, None]:
    """Async test client without authentication."""
    async with _client_for(None) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def cron_client(init_test_db) -> AsyncGenerator[AsyncClient, None]:
    """Async test client carrying the automation secret."""
    async with _client_for(None, {"Authorization": f"Bearer {CRON_SECRET}"}) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def catalog_item(client: AsyncClient) -> dict:
    response = await client.post(
        "/api/catalog",
        json={"name": "Lagavulin 16", "distillery": "Lagavulin", "category": "Scotch", "proof": 86},
    )
    assert response.status_code == 201
    return response.json()


async def _open_new_bottle(client: AsyncClient, catalog_item_id: str, **extra) -> dict:
    response = await client.post("/api/bottles", json={"catalog_item_id": catalog_item_id, **extra})
    assert response.status_code == 201
    bottle_id = response.json()["id"]
    response = await client.post(f"/api/bottles/{bottle_id}/open")
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def make_open_bottle():
    """Factory creating an opened bottle through the API."""
    return _open_new_bottle


@pytest_asyncio.fixture(scope="function")
async def open_bottle(client: AsyncClient, catalog_item: dict) -> dict:
    """An opened bottle with a known purchase price."""
    return await _open_new_bottle(client, catalog_item["id"], purchase_price=100.0)
