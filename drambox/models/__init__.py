"""MongoDB document models for DramBox."""

from drambox.models.activity import (
    Activity,
    ActivityDetail,
    BottleFinishedActivity,
    BottleOpenedActivity,
    PourActivity,
)
from drambox.models.bottle import (
    AdjustmentReason,
    Bottle,
    BottleStatus,
    FillLevelChange,
    FillLevelChangeKind,
    FillLevelLedger,
    ManualAdjustment,
    percent_of_bottle,
    status_for_level,
)
from drambox.models.catalog_item import CatalogItem
from drambox.models.pour import CompanionTag, Pour, PourLocation
from drambox.models.pour_session import PourSession
from drambox.models.user import User

__all__ = [
    # Main documents
    "Activity",
    "Bottle",
    "CatalogItem",
    "Pour",
    "PourSession",
    "User",
    # Embedded subdocuments
    "ActivityDetail",
    "BottleFinishedActivity",
    "BottleOpenedActivity",
    "CompanionTag",
    "FillLevelChange",
    "FillLevelLedger",
    "ManualAdjustment",
    "PourActivity",
    # Enums and helpers
    "AdjustmentReason",
    "BottleStatus",
    "FillLevelChangeKind",
    "PourLocation",
    "percent_of_bottle",
    "status_for_level",
]
