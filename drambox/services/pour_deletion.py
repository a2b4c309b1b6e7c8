"""Pour deletion and the reconciliation of everything derived from it."""

import logging
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from beanie import PydanticObjectId

from drambox.config import settings
from drambox.models import Bottle, BottleStatus, Pour, PourSession, percent_of_bottle, status_for_level
from drambox.services.activity import remove_pour_activity
from drambox.services.analytics import posthog_service
from drambox.services.bottles import refresh_bottle_stats, revert_fill_change, sync_bottle_stats
from drambox.services.concurrency import retry_on_conflict
from drambox.services.exceptions import Forbidden, NotFound
from drambox.services.pour_sessions import recalculate
from drambox.services.saga import Saga

logger = logging.getLogger(__name__)


class DeletionResult(NamedTuple):
    pour_id: PydanticObjectId
    bottle: Optional[Bottle]
    session: Optional[PourSession]


def restored_percent(pour: Pour, bottle_size_oz: float) -> float:
    """Percentage to give back for a deleted pour.

    Uses the level change recorded when the pour was applied, so a pour that
    was clamped at empty only returns what it actually removed.
    """
    if pour.level_delta is not None:
        return pour.level_delta
    return percent_of_bottle(pour.amount, bottle_size_oz)


async def _reinsert_pour(pour: Pour) -> None:
    await pour.insert()
    await sync_bottle_stats(pour.bottle_id)


async def delete_pour(pour_id: PydanticObjectId, requester_id: PydanticObjectId) -> DeletionResult:
    """Delete a pour and reverse its effect on the bottle and the session.

    Raises:
        NotFound: If the pour does not exist.
        Forbidden: If the pour belongs to another user.
        ConcurrencyConflict: If concurrent writers keep winning the race.
    """

    async def attempt() -> DeletionResult:
        pour = await Pour.get(pour_id)
        if pour is None:
            raise NotFound(f"Pour with ID {pour_id} not found")
        if pour.user_id != requester_id:
            raise Forbidden("Pour belongs to another user")

        session_id = pour.session_id
        bottle = await Bottle.get(pour.bottle_id)

        async with Saga("delete_pour", pour_id=str(pour_id), bottle_id=str(pour.bottle_id)) as saga:
            await pour.delete()
            saga.on_rollback("re-insert pour", lambda: _reinsert_pour(pour))

            if bottle is not None:
                percent = restored_percent(pour, bottle.size_oz(settings.bottle_size_oz))
                previous_marker = bottle.fill.last_manual_adjustment
                bottle.fill.restore(percent, f"Deleted pour of {pour.amount:g}oz")
                restore_entry = bottle.fill.history[-1]
                if bottle.status == BottleStatus.FINISHED:
                    bottle.status = status_for_level(bottle.status, bottle.fill.level)
                await refresh_bottle_stats(bottle)
                bottle.updated_at = datetime.now(timezone.utc)
                await bottle.save()
                saga.on_rollback(
                    "revert bottle fill",
                    lambda: revert_fill_change(bottle.id, restore_entry.entry_id, previous_marker),
                )
            else:
                logger.warning("Pour %s referenced missing bottle %s", pour_id, pour.bottle_id)

            session = await recalculate(session_id) if session_id else None

        return DeletionResult(pour_id=pour_id, bottle=bottle, session=session)

    result = await retry_on_conflict(attempt, settings.max_write_retries, "delete_pour")

    await remove_pour_activity(pour_id)
    logger.info(
        "Pour deleted: id=%s bottle=%s fill=%s",
        pour_id,
        result.bottle.id if result.bottle else None,
        f"{result.bottle.fill.level:.2f}" if result.bottle else "n/a",
    )
    posthog_service.capture(str(requester_id), "pour_deleted", {"pour_id": str(pour_id)})
    return result
