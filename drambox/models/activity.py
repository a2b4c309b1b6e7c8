"""Activity document model with a closed set of typed details."""

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field


class PourActivity(BaseModel):
    kind: Literal["pour"] = "pour"
    pour_id: PydanticObjectId
    bottle_id: PydanticObjectId
    bottle_name: str
    amount: float
    rating: Optional[float] = None
    session_id: Optional[PydanticObjectId] = None


class BottleOpenedActivity(BaseModel):
    kind: Literal["bottle_opened"] = "bottle_opened"
    bottle_id: PydanticObjectId
    bottle_name: str


class BottleFinishedActivity(BaseModel):
    kind: Literal["bottle_finished"] = "bottle_finished"
    bottle_id: PydanticObjectId
    bottle_name: str


ActivityDetail = Annotated[
    Union[PourActivity, BottleOpenedActivity, BottleFinishedActivity],
    Field(discriminator="kind"),
]


class Activity(Document):
    """Something a user did, for their own timeline."""

    user_id: Indexed(PydanticObjectId)
    detail: ActivityDetail
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "activities"
        indexes = [
            [("user_id", 1), ("created_at", -1)],
            "detail.pour_id",
        ]
