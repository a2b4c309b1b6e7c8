"""Bottle lifecycle and fill-level operations.

The bottle's ``fill`` ledger is the current truth for the remaining level.
Manual corrections overwrite it and become the baseline for later pours;
only :func:`recalculate_fill_level` rebuilds it from pour history.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from beanie import PydanticObjectId

from drambox.config import settings
from drambox.models import (
    AdjustmentReason,
    Bottle,
    BottleStatus,
    CatalogItem,
    FillLevelChangeKind,
    ManualAdjustment,
    Pour,
    percent_of_bottle,
    status_for_level,
)
from drambox.services.activity import record_bottle_finished, record_bottle_opened
from drambox.services.aggregates import BottleStats, bottle_stats_from_group
from drambox.services.analytics import posthog_service
from drambox.services.concurrency import retry_on_conflict
from drambox.services.exceptions import InvalidInput, InvalidState, NotFound

logger = logging.getLogger(__name__)


async def get_owned_bottle(bottle_id: PydanticObjectId, owner_id: PydanticObjectId) -> Bottle:
    """Load a bottle that belongs to ``owner_id``.

    Raises:
        NotFound: If the bottle does not exist or belongs to someone else.
    """
    bottle = await Bottle.find_one(Bottle.id == bottle_id, Bottle.owner_id == owner_id)
    if bottle is None:
        raise NotFound(f"Bottle with ID {bottle_id} not found")
    return bottle


async def create_bottle(
    owner_id: PydanticObjectId,
    catalog_item_id: PydanticObjectId,
    purchase_price: Optional[float] = None,
    purchase_date: Optional[datetime] = None,
    bottle_size_oz: Optional[float] = None,
    notes: Optional[str] = None,
) -> Bottle:
    """Add an unopened bottle of a catalog item to a user's collection."""
    item = await CatalogItem.get(catalog_item_id)
    if item is None:
        raise NotFound(f"Catalog item with ID {catalog_item_id} not found")

    bottle = Bottle(
        owner_id=owner_id,
        catalog_item_id=item.id,
        name=item.name,
        image_url=item.image_url,
        purchase_price=purchase_price,
        purchase_date=purchase_date,
        bottle_size_oz=bottle_size_oz,
        notes=notes,
    )
    await bottle.insert()
    logger.info("Bottle created: id=%s owner=%s catalog=%s", bottle.id, owner_id, item.id)
    return bottle


async def open_bottle(bottle_id: PydanticObjectId, owner_id: PydanticObjectId) -> Bottle:
    """Move an unopened bottle to ``opened`` at a full level."""

    async def attempt() -> Bottle:
        bottle = await get_owned_bottle(bottle_id, owner_id)
        if bottle.status != BottleStatus.UNOPENED:
            raise InvalidState(f"Bottle is already {bottle.status.value}")

        now = datetime.now(timezone.utc)
        bottle.status = BottleStatus.OPENED
        bottle.open_date = now
        bottle.fill.adjust(100.0, FillLevelChangeKind.MANUAL, "Bottle opened")
        bottle.updated_at = now
        await bottle.save()
        return bottle

    bottle = await retry_on_conflict(attempt, settings.max_write_retries, "open_bottle")
    await record_bottle_opened(bottle)
    posthog_service.capture(str(owner_id), "bottle_opened", {"bottle_id": str(bottle.id)})
    return bottle


async def set_fill_level(
    bottle_id: PydanticObjectId,
    owner_id: PydanticObjectId,
    fill_level: float,
    reason: AdjustmentReason,
    notes: Optional[str] = None,
) -> tuple[Bottle, float]:
    """Record a manual fill-level correction.

    Returns:
        The updated bottle and the level before the correction.

    Raises:
        InvalidInput: If the level is outside 0-100.
        InvalidState: If the bottle has not been opened.
    """
    if not 0 <= fill_level <= 100:
        raise InvalidInput("Invalid fill level. Must be between 0 and 100.")

    async def attempt() -> tuple[Bottle, float, BottleStatus]:
        bottle = await get_owned_bottle(bottle_id, owner_id)
        if bottle.status == BottleStatus.UNOPENED:
            raise InvalidState("Cannot adjust fill level on unopened bottle")

        previous_level = bottle.fill.level
        previous_status = bottle.status
        note = notes or f"Manual adjustment from {previous_level:.2f}% to {fill_level:.2f}%"
        bottle.fill.adjust(fill_level, FillLevelChangeKind.MANUAL, note, reason)
        bottle.status = status_for_level(bottle.status, bottle.fill.level)
        bottle.updated_at = datetime.now(timezone.utc)
        await bottle.save()
        return bottle, previous_level, previous_status

    bottle, previous_level, previous_status = await retry_on_conflict(
        attempt, settings.max_write_retries, "set_fill_level"
    )
    if bottle.status == BottleStatus.FINISHED and previous_status != BottleStatus.FINISHED:
        await record_bottle_finished(bottle)

    logger.info(
        "Manual fill-level adjustment: bottle=%s %.2f -> %.2f (%s)",
        bottle.id,
        previous_level,
        bottle.fill.level,
        reason.value,
    )
    posthog_service.capture(
        str(owner_id),
        "fill_level_adjusted",
        {"bottle_id": str(bottle.id), "reason": reason.value, "fill_level": bottle.fill.level},
    )
    return bottle, previous_level


async def recalculate_fill_level(
    bottle_id: PydanticObjectId, owner_id: PydanticObjectId
) -> tuple[Bottle, float]:
    """Rebuild the level by replaying every canonical pour from a full bottle.

    Returns:
        The updated bottle and the level before recalculation.
    """

    async def attempt() -> tuple[Bottle, float]:
        bottle = await get_owned_bottle(bottle_id, owner_id)
        if bottle.status == BottleStatus.UNOPENED:
            raise InvalidState("Cannot recalculate fill level on unopened bottle")

        pours = await Pour.find(Pour.bottle_id == bottle.id).sort(+Pour.date, +Pour.id).to_list()
        size = bottle.size_oz(settings.bottle_size_oz)
        previous_level = bottle.fill.level
        bottle.fill.replay(
            (percent_of_bottle(p.amount, size) for p in pours),
            f"Fill level recalculated from {len(pours)} pour(s). "
            f"Previous level was {previous_level:.2f}%",
        )
        bottle.status = status_for_level(bottle.status, bottle.fill.level)
        bottle.updated_at = datetime.now(timezone.utc)
        await bottle.save()
        return bottle, previous_level

    bottle, previous_level = await retry_on_conflict(
        attempt, settings.max_write_retries, "recalculate_fill_level"
    )
    logger.info(
        "Fill level recalculated: bottle=%s %.2f -> %.2f",
        bottle.id,
        previous_level,
        bottle.fill.level,
    )
    return bottle, previous_level


async def compute_bottle_stats(bottle_id: PydanticObjectId) -> BottleStats:
    """Pour count, mean rating and last pour date from canonical pours."""
    rows = await Pour.find(Pour.bottle_id == bottle_id).aggregate(
        [
            {
                "$group": {
                    "_id": None,
                    "total_pours": {"$sum": 1},
                    "avg_rating": {"$avg": "$rating"},
                    "last_pour_date": {"$max": "$date"},
                }
            }
        ]
    ).to_list()
    return bottle_stats_from_group(rows[0] if rows else None)


async def refresh_bottle_stats(bottle: Bottle) -> Bottle:
    """Overwrite the bottle's derived stats in memory; the caller saves."""
    stats = await compute_bottle_stats(bottle.id)
    bottle.total_pours = stats.total_pours
    bottle.average_rating = stats.average_rating
    bottle.last_pour_date = stats.last_pour_date
    return bottle


async def revert_fill_change(
    bottle_id: PydanticObjectId,
    entry_id: PydanticObjectId,
    previous_marker: Optional[ManualAdjustment] = None,
) -> None:
    """Undo one ledger entry on the stored bottle.

    Works on a fresh read so writes that landed after the entry are kept.
    A bottle that no longer holds the entry is left untouched.
    """

    async def attempt() -> None:
        bottle = await Bottle.get(bottle_id)
        if bottle is None or not bottle.fill.revert(entry_id, previous_marker):
            return
        bottle.status = status_for_level(bottle.status, bottle.fill.level)
        bottle.updated_at = datetime.now(timezone.utc)
        await bottle.save()
        logger.info("Reverted fill entry %s on bottle %s", entry_id, bottle_id)

    await retry_on_conflict(attempt, settings.max_write_retries, "revert_fill_change")


async def sync_bottle_stats(bottle_id: PydanticObjectId) -> None:
    """Recompute and store the derived pour stats of a bottle."""

    async def attempt() -> None:
        bottle = await Bottle.get(bottle_id)
        if bottle is None:
            return
        await refresh_bottle_stats(bottle)
        await bottle.save()

    await retry_on_conflict(attempt, settings.max_write_retries, "sync_bottle_stats")


async def recent_pours(bottle_id: PydanticObjectId, limit: Optional[int] = None) -> list[Pour]:
    """Most recent pours of a bottle, newest first."""
    if limit is None:
        limit = settings.recent_pours_limit
    return await Pour.find(Pour.bottle_id == bottle_id).sort(-Pour.date).limit(limit).to_list()
