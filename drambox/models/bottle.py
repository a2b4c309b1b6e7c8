"""Bottle document model with the embedded fill-level ledger."""

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field


class BottleStatus(str, Enum):
    """Lifecycle of an owned bottle."""

    UNOPENED = "unopened"
    OPENED = "opened"
    FINISHED = "finished"


class FillLevelChangeKind(str, Enum):
    """What produced a fill-level history entry."""

    MANUAL = "manual"
    POUR = "pour"
    RECALCULATION = "recalculation"


class AdjustmentReason(str, Enum):
    """User-supplied reason for a manual fill-level correction."""

    EVAPORATION = "evaporation"
    SHARED = "shared"
    CORRECTION = "correction"
    OTHER = "other"


def percent_of_bottle(amount_oz: float, bottle_size_oz: float) -> float:
    """Convert a poured volume into the percentage of the bottle it represents."""
    return amount_oz / bottle_size_oz * 100


# Float residue left after pouring out a whole bottle
LEVEL_EPSILON = 1e-9


def clamp_level(level: float) -> float:
    """Clamp to [0, 100], snapping float residue near empty to exactly 0."""
    if level < LEVEL_EPSILON:
        return 0.0
    return min(100.0, level)


def status_for_level(status: BottleStatus, level: float) -> BottleStatus:
    """Derive the bottle status implied by a fill level.

    Unopened bottles are never moved by a level change; only the explicit
    open action takes a bottle out of ``unopened``.
    """
    if status == BottleStatus.UNOPENED:
        return status
    if level <= 0:
        return BottleStatus.FINISHED
    return BottleStatus.OPENED


class FillLevelChange(BaseModel):
    """Embedded subdocument for one fill-level history entry."""

    entry_id: PydanticObjectId = Field(default_factory=PydanticObjectId)
    previous_level: float
    new_level: float
    kind: FillLevelChangeKind
    note: Optional[str] = None
    reason: Optional[AdjustmentReason] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ManualAdjustment(BaseModel):
    """Marker for the most recent manual correction."""

    entry_id: Optional[PydanticObjectId] = None
    level: float
    reason: Optional[AdjustmentReason] = None
    note: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FillLevelLedger(BaseModel):
    """Embedded per-bottle fill state.

    ``level`` is always the current truth. Pours subtract from it and manual
    corrections overwrite it, so a manual value becomes the baseline for
    every later pour. Only :meth:`replay` rebuilds the level from pour history.
    """

    level: float = Field(default=100.0, ge=0, le=100)
    last_manual_adjustment: Optional[ManualAdjustment] = None
    history: list[FillLevelChange] = Field(default_factory=list)

    def adjust(
        self,
        new_level: float,
        kind: FillLevelChangeKind,
        note: Optional[str] = None,
        reason: Optional[AdjustmentReason] = None,
    ) -> FillLevelChange:
        """Set the level, logging one history entry.

        The value is clamped to [0, 100]. Domain checks such as "bottle must
        be opened" belong to the caller.
        """
        new_level = clamp_level(new_level)
        entry = FillLevelChange(
            previous_level=self.level,
            new_level=new_level,
            kind=kind,
            note=note,
            reason=reason,
        )
        self.history.append(entry)
        if kind == FillLevelChangeKind.MANUAL:
            self.last_manual_adjustment = ManualAdjustment(
                entry_id=entry.entry_id,
                level=new_level,
                reason=reason,
                note=note,
                timestamp=entry.timestamp,
            )
        self.level = new_level
        return entry

    def apply_pour(self, percent: float, note: Optional[str] = None) -> float:
        """Subtract a pour and return the percentage actually removed."""
        previous = self.level
        self.adjust(max(0.0, previous - percent), FillLevelChangeKind.POUR, note)
        return previous - self.level

    def restore(self, percent: float, note: Optional[str] = None) -> float:
        """Give back a deleted pour as a manual correction, capped at 100."""
        previous = self.level
        self.adjust(min(100.0, previous + percent), FillLevelChangeKind.MANUAL, note)
        return self.level - previous

    def replay(self, percents: Iterable[float], note: Optional[str] = None) -> float:
        """Rebuild the level from a full bottle and chronological pour percentages.

        Clears the history and the manual marker, then leaves a single
        recalculation entry. Returns the previous level.
        """
        previous = self.level
        level = 100.0
        count = 0
        for percent in percents:
            level = max(0.0, level - percent)
            count += 1

        self.history = []
        self.last_manual_adjustment = None
        self.level = previous
        self.adjust(
            level,
            FillLevelChangeKind.RECALCULATION,
            note or f"Recalculated from {count} pour(s)",
        )
        return previous

    def revert(
        self,
        entry_id: PydanticObjectId,
        previous_marker: Optional[ManualAdjustment] = None,
    ) -> bool:
        """Undo one history entry, keeping every change logged after it.

        Later pours are relative and stay applied on top of the undone
        change. A later manual or recalculation entry set an absolute level,
        so the level is left alone and only the entry is dropped. Returns
        False if the entry is not in the history.
        """
        index = next(
            (i for i, change in enumerate(self.history) if change.entry_id == entry_id),
            None,
        )
        if index is None:
            return False

        entry = self.history.pop(index)
        later = self.history[index:]
        if all(change.kind == FillLevelChangeKind.POUR for change in later):
            self.level = clamp_level(self.level - (entry.new_level - entry.previous_level))

        marker = self.last_manual_adjustment
        if marker is not None and marker.entry_id == entry_id:
            self.last_manual_adjustment = previous_marker
        return True


class Bottle(Document):
    """A user-owned physical bottle of a catalog item."""

    owner_id: Indexed(PydanticObjectId)
    catalog_item_id: Indexed(PydanticObjectId)

    # Denormalized for display
    name: str
    image_url: Optional[str] = None

    purchase_price: Optional[float] = Field(default=None, ge=0)
    purchase_date: Optional[datetime] = None
    bottle_size_oz: Optional[float] = Field(default=None, gt=0)
    notes: Optional[str] = None

    status: BottleStatus = BottleStatus.UNOPENED
    open_date: Optional[datetime] = None

    fill: FillLevelLedger = Field(default_factory=FillLevelLedger)

    # Derived from canonical Pour rows
    total_pours: int = 0
    average_rating: Optional[float] = None
    last_pour_date: Optional[datetime] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "bottles"
        use_revision = True
        indexes = [
            "owner_id",
            "catalog_item_id",
            [("owner_id", 1), ("status", 1)],
        ]

    def size_oz(self, default: float) -> float:
        """Bottle volume in ounces, falling back to the configured default."""
        return self.bottle_size_oz or default

    def cost_of(self, amount_oz: float, default_size: float) -> Optional[float]:
        """Cost of a pour derived from the purchase price, if known."""
        if self.purchase_price is None:
            return None
        return self.purchase_price / self.size_oz(default_size) * amount_oz

    def __repr__(self) -> str:
        return f"<Bottle(id={self.id}, name={self.name}, status={self.status.value}, fill={self.fill.level:.2f})>"
