"""Pydantic schemas for CatalogItem model."""

from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CatalogItemCreate(BaseModel):
    """Schema for creating a catalog item."""

    name: str = Field(..., min_length=1, max_length=255)
    brand: str | None = Field(None, max_length=255)
    distillery: str | None = Field(None, max_length=255)
    category: str | None = Field(None, max_length=100)
    proof: float | None = Field(None, ge=0, le=200)
    age: int | None = Field(None, ge=0, le=100)
    image_url: str | None = Field(None, max_length=2000)


class CatalogItemResponse(BaseModel):
    """Schema for catalog item response."""

    id: str
    name: str
    brand: str | None = None
    distillery: str | None = None
    category: str | None = None
    proof: float | None = None
    age: int | None = None
    image_url: str | None = None
    community_rating: float | None = None
    community_rating_count: int = 0
    last_calculated: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> Any:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v
