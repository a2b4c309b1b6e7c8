"""Pydantic schemas for batch job reports."""

from datetime import datetime

from pydantic import BaseModel


class OrphanSweepReport(BaseModel):
    """Outcome of one orphaned-pour sweep."""

    found: int = 0
    fixed: int = 0
    failed: int = 0
    remaining: int = 0
    alert: bool = False
    timestamp: datetime


class RatingRunReport(BaseModel):
    """Outcome of one community rating recompute."""

    bottles_updated: int = 0
    bottles_cleared: int = 0
    total_processed: int = 0
    failed: int = 0
    execution_time_ms: int = 0
    timestamp: datetime


class RatingStats(BaseModel):
    """Coverage of community ratings across the catalog."""

    total_items: int
    rated_items: int
    unrated_items: int
    coverage_percent: float
    rated_pours: int
    last_calculated: datetime | None = None
