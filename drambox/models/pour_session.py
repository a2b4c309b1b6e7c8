"""Pour session document model grouping pours into one occasion."""

from datetime import datetime, timezone
from typing import Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field

from drambox.models.pour import CompanionTag, PourLocation


class PourSession(Document):
    """A drinking occasion. Totals are recomputed from its pours."""

    user_id: Indexed(PydanticObjectId)
    session_name: str
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    companions: list[str] = Field(default_factory=list)
    companion_tags: list[CompanionTag] = Field(default_factory=list)
    location: Optional[PourLocation] = None
    tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = None

    total_pours: int = 0
    total_amount: float = 0.0
    average_rating: Optional[float] = None
    total_cost: Optional[float] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "pour_sessions"
        use_revision = True
        indexes = [
            "user_id",
            [("user_id", 1), ("date", -1)],
        ]

    def __repr__(self) -> str:
        return f"<PourSession(id={self.id}, name={self.session_name}, pours={self.total_pours})>"
