"""Catalog item document model, shared product reference data."""

from datetime import datetime, timezone
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field


class CatalogItem(Document):
    """A whiskey product independent of any one user's bottle.

    The community rating fields are written only by the rating batch job.
    """

    name: Indexed(str)
    brand: Optional[str] = None
    distillery: Optional[str] = None
    category: Optional[str] = None
    proof: Optional[float] = Field(default=None, ge=0, le=200)
    age: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None

    community_rating: Optional[float] = None
    community_rating_count: int = 0
    last_calculated: Optional[datetime] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "catalog_items"
        indexes = [
            "name",
            [("name", "text"), ("brand", "text"), ("distillery", "text")],
        ]

    def __repr__(self) -> str:
        return f"<CatalogItem(id={self.id}, name={self.name})>"
