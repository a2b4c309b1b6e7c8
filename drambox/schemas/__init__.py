"""Pydantic schemas for API request/response validation."""

from drambox.schemas.activity import ActivityResponse
from drambox.schemas.bottle import (
    BottleCreate,
    BottleResponse,
    FillLevelResponse,
    FillLevelUpdate,
    RecentPour,
)
from drambox.schemas.catalog import CatalogItemCreate, CatalogItemResponse
from drambox.schemas.jobs import OrphanSweepReport, RatingRunReport, RatingStats
from drambox.schemas.pour import (
    PourCreate,
    PourDeleteResponse,
    PourRecordResponse,
    PourResponse,
)
from drambox.schemas.pour_session import PourSessionCreate, PourSessionResponse

__all__ = [
    "ActivityResponse",
    "BottleCreate",
    "BottleResponse",
    "CatalogItemCreate",
    "CatalogItemResponse",
    "FillLevelResponse",
    "FillLevelUpdate",
    "OrphanSweepReport",
    "PourCreate",
    "PourDeleteResponse",
    "PourRecordResponse",
    "PourResponse",
    "PourSessionCreate",
    "PourSessionResponse",
    "RatingRunReport",
    "RatingStats",
    "RecentPour",
]
