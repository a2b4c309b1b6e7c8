"""MongoDB database setup and Beanie ODM initialization."""

from typing import TYPE_CHECKING

from beanie import init_beanie
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from drambox.config import settings

if TYPE_CHECKING:
    from beanie import Document

# Global database client and database references
client: AsyncMongoClient | None = None
database: AsyncDatabase | None = None


def get_document_models() -> list[type["Document"]]:
    """Get all Beanie document models for initialization."""
    from drambox.models import Activity, Bottle, CatalogItem, Pour, PourSession, User

    return [
        User,
        CatalogItem,
        Bottle,
        Pour,
        PourSession,
        Activity,
    ]


def create_client(mongodb_url: str | None = None) -> AsyncMongoClient:
    """Create a timezone-aware async client with the configured pool sizes."""
    return AsyncMongoClient(
        mongodb_url or settings.mongodb_url,
        tz_aware=True,
        minPoolSize=settings.min_pool_size,
        maxPoolSize=settings.max_pool_size,
    )


async def init_db(
    mongodb_url: str | None = None,
    mongodb_database: str | None = None,
    mongo_client: AsyncMongoClient | None = None,
) -> None:
    """Initialize the MongoDB database connection and Beanie ODM.

    Args:
        mongodb_url: Optional MongoDB connection URL. Defaults to settings.
        mongodb_database: Optional database name. Defaults to settings.
        mongo_client: Optional pre-configured client (for testing).
    """
    global client, database

    client = mongo_client if mongo_client is not None else create_client(mongodb_url)

    db_name = mongodb_database or settings.mongodb_database
    database = client[db_name]

    await init_beanie(
        database=database,
        document_models=get_document_models(),
    )


async def close_db() -> None:
    """Close the MongoDB database connection."""
    global client, database

    if client is not None:
        await client.close()
        client = None
        database = None


def get_database() -> AsyncDatabase:
    """Get the current database instance.

    Raises:
        RuntimeError: If database is not initialized.
    """
    if database is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return database
