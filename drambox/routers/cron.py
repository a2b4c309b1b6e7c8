"""Automation endpoints for scheduled batch jobs.

These are called by an external scheduler with the shared cron secret as a
bearer token, not by end users.
"""

import logging

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from drambox.config import settings
from drambox.schemas.jobs import OrphanSweepReport, RatingRunReport, RatingStats
from drambox.services.auth import RequireCron
from drambox.services.community_ratings import calculate_community_ratings, rating_stats
from drambox.services.orphan_sweep import sweep_orphaned_pours

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[RequireCron])

limiter = Limiter(key_func=get_remote_address)


@router.post("/check-orphaned-pours", response_model=OrphanSweepReport)
@limiter.limit(lambda: settings.cron_rate_limit)
async def check_orphaned_pours(request: Request) -> OrphanSweepReport:
    """Attach pours that have no session and report what remains."""
    return await sweep_orphaned_pours()


@router.post("/calculate-ratings", response_model=RatingRunReport)
@limiter.limit(lambda: settings.cron_rate_limit)
async def run_rating_calculation(request: Request) -> RatingRunReport:
    """Recompute every catalog item's community rating."""
    return await calculate_community_ratings()


@router.get("/calculate-ratings", response_model=RatingStats)
async def get_rating_stats() -> RatingStats:
    """Report community rating coverage."""
    return await rating_stats()
