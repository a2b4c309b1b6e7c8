"""Pour document model, the canonical record of a consumption event."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, IndexModel


class PourLocation(str, Enum):
    """Where a pour happened."""

    HOME = "home"
    BAR = "bar"
    RESTAURANT = "restaurant"
    FRIEND = "friend"
    EVENT = "event"
    OTHER = "other"


class CompanionTag(BaseModel):
    """A companion, either a known friend or free text."""

    type: str = Field(default="text", pattern="^(friend|text)$")
    friend_id: Optional[PydanticObjectId] = None
    name: str


class Pour(Document):
    """A single pour from a bottle.

    ``session_id`` is only ever null between insert and session attachment;
    the orphan sweep repairs anything left in that state.
    """

    user_id: Indexed(PydanticObjectId)
    bottle_id: Indexed(PydanticObjectId)
    session_id: Optional[PydanticObjectId] = None

    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    amount: float = Field(gt=0)
    rating: Optional[float] = Field(default=None, ge=0, le=10)
    cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    companions: list[str] = Field(default_factory=list)
    companion_tags: list[CompanionTag] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    location: Optional[PourLocation] = None

    # Percentage actually removed from the bottle (after clamping at 0)
    level_delta: Optional[float] = None

    # Client-supplied idempotency key
    client_request_id: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "pours"
        indexes = [
            "user_id",
            "bottle_id",
            "session_id",
            [("user_id", 1), ("date", -1)],
            [("bottle_id", 1), ("date", 1)],
            IndexModel(
                [("user_id", ASCENDING), ("client_request_id", ASCENDING)],
                name="user_client_request_unique",
                unique=True,
                partialFilterExpression={"client_request_id": {"$type": "string"}},
            ),
        ]

    def __repr__(self) -> str:
        return f"<Pour(id={self.id}, bottle_id={self.bottle_id}, amount={self.amount})>"
