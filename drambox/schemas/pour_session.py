"""Pydantic schemas for PourSession model."""

from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from drambox.models.pour import CompanionTag, PourLocation


class PourSessionCreate(BaseModel):
    """Schema for starting a session explicitly."""

    session_name: str | None = Field(None, max_length=200)
    date: datetime | None = None
    companions: list[str] = Field(default_factory=list)
    companion_tags: list[CompanionTag] = Field(default_factory=list)
    location: PourLocation | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = Field(None, max_length=2000)


class PourSessionResponse(BaseModel):
    """Schema for pour session response."""

    id: str
    user_id: str
    session_name: str
    date: datetime
    companions: list[str] = []
    companion_tags: list[CompanionTag] = []
    location: PourLocation | None = None
    tags: list[str] = []
    notes: str | None = None
    total_pours: int
    total_amount: float
    average_rating: float | None = None
    total_cost: float | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> Any:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v
