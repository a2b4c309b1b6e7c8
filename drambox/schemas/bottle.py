"""Pydantic schemas for Bottle model."""

from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from drambox.models.bottle import AdjustmentReason, BottleStatus, FillLevelLedger


class BottleCreate(BaseModel):
    """Schema for adding a bottle to the collection."""

    catalog_item_id: PydanticObjectId
    purchase_price: float | None = Field(None, ge=0)
    purchase_date: datetime | None = None
    bottle_size_oz: float | None = Field(None, gt=0, description="Defaults to a 750 mL bottle")
    notes: str | None = Field(None, max_length=2000)


class FillLevelUpdate(BaseModel):
    """Schema for a manual fill-level correction."""

    fill_level: float = Field(..., ge=0, le=100)
    reason: AdjustmentReason
    notes: str | None = Field(None, max_length=500)


class RecentPour(BaseModel):
    """Compact pour entry shown on a bottle."""

    id: str
    date: datetime
    amount: float
    rating: float | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> Any:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v


class BottleResponse(BaseModel):
    """Schema for bottle response."""

    id: str
    owner_id: str
    catalog_item_id: str
    name: str
    image_url: str | None = None
    purchase_price: float | None = None
    purchase_date: datetime | None = None
    bottle_size_oz: float | None = None
    notes: str | None = None
    status: BottleStatus
    open_date: datetime | None = None
    fill: FillLevelLedger
    total_pours: int
    average_rating: float | None = None
    last_pour_date: datetime | None = None
    created_at: datetime
    updated_at: datetime
    recent_pours: list[RecentPour] = []

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", "owner_id", "catalog_item_id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> Any:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v


class FillLevelResponse(BaseModel):
    """Schema returned by fill-level adjustments and recalculation."""

    bottle: BottleResponse
    previous_level: float
    new_level: float
    message: str
