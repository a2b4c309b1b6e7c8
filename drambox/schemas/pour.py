"""Pydantic schemas for Pour model."""

from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from drambox.models.pour import CompanionTag, PourLocation
from drambox.schemas.bottle import BottleResponse
from drambox.schemas.pour_session import PourSessionResponse


class PourCreate(BaseModel):
    """Schema for recording a pour."""

    bottle_id: PydanticObjectId
    amount: float = Field(..., gt=0, description="Poured volume in fluid ounces")
    rating: float | None = Field(None, ge=0, le=10)
    notes: str | None = Field(None, max_length=2000)
    date: datetime | None = None
    cost: float | None = Field(None, ge=0, description="Overrides the cost derived from purchase price")
    companions: list[str] = Field(default_factory=list)
    companion_tags: list[CompanionTag] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    location: PourLocation | None = None

    session_id: PydanticObjectId | None = None
    new_session: bool = False
    session_name: str | None = Field(None, max_length=200)

    client_request_id: str | None = Field(
        None,
        min_length=1,
        max_length=128,
        description="Idempotency key; resubmitting the same key returns the original pour",
    )


class PourResponse(BaseModel):
    """Schema for pour response."""

    id: str
    user_id: str
    bottle_id: str
    session_id: str | None
    date: datetime
    amount: float
    rating: float | None = None
    cost: float | None = None
    notes: str | None = None
    companions: list[str] = []
    companion_tags: list[CompanionTag] = []
    tags: list[str] = []
    location: PourLocation | None = None
    level_delta: float | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", "user_id", "bottle_id", "session_id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> Any:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v


class PourRecordResponse(BaseModel):
    """Schema returned after recording a pour."""

    pour: PourResponse
    bottle: BottleResponse
    session: PourSessionResponse | None
    replayed: bool = False


class PourDeleteResponse(BaseModel):
    """Schema returned after deleting a pour."""

    deleted_pour_id: str
    bottle_id: str
    fill_level: float
    bottle_status: str
    session: PourSessionResponse | None
