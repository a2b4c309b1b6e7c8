"""Activity recording for pours and bottle lifecycle events."""

import logging

from beanie import PydanticObjectId

from drambox.models import (
    Activity,
    Bottle,
    BottleFinishedActivity,
    BottleOpenedActivity,
    Pour,
    PourActivity,
)

logger = logging.getLogger(__name__)


async def record_pour_activity(pour: Pour, bottle: Bottle) -> Activity:
    activity = Activity(
        user_id=pour.user_id,
        detail=PourActivity(
            pour_id=pour.id,
            bottle_id=bottle.id,
            bottle_name=bottle.name,
            amount=pour.amount,
            rating=pour.rating,
            session_id=pour.session_id,
        ),
    )
    await activity.insert()
    return activity


async def record_bottle_opened(bottle: Bottle) -> Activity:
    activity = Activity(
        user_id=bottle.owner_id,
        detail=BottleOpenedActivity(bottle_id=bottle.id, bottle_name=bottle.name),
    )
    await activity.insert()
    return activity


async def record_bottle_finished(bottle: Bottle) -> Activity:
    activity = Activity(
        user_id=bottle.owner_id,
        detail=BottleFinishedActivity(bottle_id=bottle.id, bottle_name=bottle.name),
    )
    await activity.insert()
    return activity


async def remove_pour_activity(pour_id: PydanticObjectId) -> int:
    """Drop the timeline entry of a deleted pour. Returns the number removed."""
    result = await Activity.find({"detail.kind": "pour", "detail.pour_id": pour_id}).delete()
    removed = result.deleted_count if result else 0
    logger.debug("Removed %d activity record(s) for pour %s", removed, pour_id)
    return removed
