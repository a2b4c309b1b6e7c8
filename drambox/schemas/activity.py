"""Pydantic schemas for Activity model."""

from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, field_validator

from drambox.models.activity import ActivityDetail


class ActivityResponse(BaseModel):
    """Schema for activity response."""

    id: str
    user_id: str
    detail: ActivityDetail
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> Any:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v
