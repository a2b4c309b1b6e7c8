"""Pour recording.

Recording a pour touches three collections. The pour is inserted with its
session already attached, the bottle ledger subtracts the poured percentage
and refreshes its stats in a single revision-checked save, and the session
totals are recomputed. A failure part-way rolls back the earlier steps, and
a lost revision race restarts the whole operation from a fresh read.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import NamedTuple, Optional

from beanie import PydanticObjectId
from pymongo.errors import DuplicateKeyError

from drambox.config import settings
from drambox.models import Bottle, BottleStatus, Pour, PourSession, percent_of_bottle, status_for_level
from drambox.schemas.pour import PourCreate
from drambox.services.activity import record_bottle_finished, record_pour_activity
from drambox.services.analytics import posthog_service
from drambox.services.bottles import (
    get_owned_bottle,
    refresh_bottle_stats,
    revert_fill_change,
    sync_bottle_stats,
)
from drambox.services.concurrency import retry_on_conflict
from drambox.services.exceptions import InvalidInput, InvalidState, NotFound
from drambox.services.pour_sessions import as_utc, merge_pour_details, recalculate, resolve_session
from drambox.services.saga import Saga

logger = logging.getLogger(__name__)


class PourResult(NamedTuple):
    pour: Pour
    bottle: Bottle
    session: Optional[PourSession]
    replayed: bool = False


def validate_pour_values(amount: float, rating: Optional[float]) -> None:
    """Check amount and rating against their domain ranges.

    Raises:
        InvalidInput: If a value is out of range.
    """
    if amount <= 0:
        raise InvalidInput("Pour amount must be greater than 0")
    if amount > settings.max_pour_oz:
        raise InvalidInput(f"Pour amount cannot exceed {settings.max_pour_oz:g} oz")
    if rating is not None:
        if not 0 <= rating <= 10:
            raise InvalidInput("Rating must be between 0 and 10")
        if Decimal(str(rating)).as_tuple().exponent < -1:
            raise InvalidInput("Rating can have at most one decimal place")


async def _replay(user_id: PydanticObjectId, client_request_id: str) -> Optional[PourResult]:
    """Return the result of an earlier submission with the same idempotency key."""
    existing = await Pour.find_one(
        Pour.user_id == user_id,
        Pour.client_request_id == client_request_id,
    )
    if existing is None:
        return None
    logger.info("Duplicate pour submission %s returned pour %s", client_request_id, existing.id)
    bottle = await Bottle.get(existing.bottle_id)
    session = await PourSession.get(existing.session_id) if existing.session_id else None
    return PourResult(pour=existing, bottle=bottle, session=session, replayed=True)


async def _discard_pour(pour: Pour) -> None:
    await pour.delete()
    await sync_bottle_stats(pour.bottle_id)


async def record_pour(user_id: PydanticObjectId, data: PourCreate) -> PourResult:
    """Record a pour from an opened bottle the user owns.

    Raises:
        InvalidInput: If amount or rating are out of range.
        NotFound: If the bottle (or an explicit session) does not exist.
        Forbidden: If an explicit session belongs to another user.
        InvalidState: If the bottle is unopened or finished.
        ConcurrencyConflict: If concurrent writers keep winning the race.
    """
    validate_pour_values(data.amount, data.rating)

    if data.client_request_id:
        replay = await _replay(user_id, data.client_request_id)
        if replay is not None:
            return replay

    pour_date = as_utc(data.date) if data.date else datetime.now(timezone.utc)

    async def attempt() -> tuple[Pour, Bottle, Optional[PourSession], bool]:
        bottle = await get_owned_bottle(data.bottle_id, user_id)
        if bottle.status == BottleStatus.UNOPENED:
            raise InvalidState("Bottle is unopened; open it before recording a pour")
        if bottle.status == BottleStatus.FINISHED:
            raise InvalidState("Bottle is finished")

        async with Saga("record_pour", user_id=str(user_id), bottle_id=str(bottle.id)) as saga:
            session, created = await resolve_session(
                user_id,
                pour_date,
                session_id=data.session_id,
                new_session=data.new_session,
                session_name=data.session_name,
                location=data.location,
            )
            if created:
                saga.on_rollback("delete new session", session.delete)

            size = bottle.size_oz(settings.bottle_size_oz)
            removed = bottle.fill.apply_pour(
                percent_of_bottle(data.amount, size),
                f"Poured {data.amount:g} oz",
            )
            pour_entry = bottle.fill.history[-1]
            bottle.status = status_for_level(bottle.status, bottle.fill.level)

            pour = Pour(
                user_id=user_id,
                bottle_id=bottle.id,
                session_id=session.id,
                date=pour_date,
                amount=data.amount,
                rating=data.rating,
                cost=data.cost if data.cost is not None else bottle.cost_of(data.amount, settings.bottle_size_oz),
                notes=data.notes,
                companions=data.companions,
                companion_tags=data.companion_tags,
                tags=data.tags,
                location=data.location,
                level_delta=removed,
                client_request_id=data.client_request_id,
            )
            await pour.insert()
            saga.on_rollback("delete pour", lambda: _discard_pour(pour))

            await refresh_bottle_stats(bottle)
            bottle.updated_at = datetime.now(timezone.utc)
            await bottle.save()
            saga.on_rollback(
                "revert bottle fill",
                lambda: revert_fill_change(bottle.id, pour_entry.entry_id),
            )

            await merge_pour_details(session.id, pour)
            session = await recalculate(session.id)

        finished = bottle.status == BottleStatus.FINISHED
        return pour, bottle, session, finished

    try:
        pour, bottle, session, finished = await retry_on_conflict(
            attempt, settings.max_write_retries, "record_pour"
        )
    except DuplicateKeyError:
        # Lost a race with an identical submission
        if data.client_request_id:
            replay = await _replay(user_id, data.client_request_id)
            if replay is not None:
                return replay
        raise

    logger.info(
        "Pour recorded: id=%s bottle=%s amount=%.2f fill=%.2f session=%s",
        pour.id,
        bottle.id,
        pour.amount,
        bottle.fill.level,
        pour.session_id,
    )
    await record_pour_activity(pour, bottle)
    if finished:
        await record_bottle_finished(bottle)
    posthog_service.capture(
        str(user_id),
        "pour_recorded",
        {
            "bottle_id": str(bottle.id),
            "amount": pour.amount,
            "rated": pour.rating is not None,
            "bottle_finished": finished,
        },
    )
    return PourResult(pour=pour, bottle=bottle, session=session)


async def get_owned_pour(pour_id: PydanticObjectId, user_id: PydanticObjectId) -> Pour:
    """Load a pour the caller owns, raising NotFound otherwise."""
    pour = await Pour.find_one(Pour.id == pour_id, Pour.user_id == user_id)
    if pour is None:
        raise NotFound(f"Pour with ID {pour_id} not found")
    return pour
