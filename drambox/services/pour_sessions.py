"""Pour session grouping and recomputation.

Every pour belongs to exactly one session. A pour joins the user's most
recent session that started within the grouping window before it, or else
starts a new one. Session totals are always recomputed from the pours that
reference the session.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from beanie import PydanticObjectId

from drambox.config import settings
from drambox.models import CompanionTag, Pour, PourLocation, PourSession
from drambox.services.aggregates import SessionTotals, compute_session_totals
from drambox.services.concurrency import retry_on_conflict
from drambox.services.exceptions import Forbidden, NotFound

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def default_session_name(start: datetime) -> str:
    return f"Session {as_utc(start).strftime('%Y-%m-%d %H:%M')}"


def _merge(existing: list, extra: list) -> list:
    merged = list(existing)
    for value in extra:
        if value not in merged:
            merged.append(value)
    return merged


async def get_owned_session(
    session_id: PydanticObjectId, user_id: PydanticObjectId
) -> PourSession:
    """Load a session and check it belongs to the caller.

    Raises:
        NotFound: If the session does not exist.
        Forbidden: If it belongs to another user.
    """
    session = await PourSession.get(session_id)
    if session is None:
        raise NotFound(f"Pour session with ID {session_id} not found")
    if session.user_id != user_id:
        raise Forbidden("Pour session belongs to another user")
    return session


async def create_session(
    user_id: PydanticObjectId,
    date: Optional[datetime] = None,
    session_name: Optional[str] = None,
    companions: Optional[list[str]] = None,
    companion_tags: Optional[list[CompanionTag]] = None,
    location: Optional[PourLocation] = None,
    tags: Optional[list[str]] = None,
    notes: Optional[str] = None,
) -> PourSession:
    start = as_utc(date) if date else datetime.now(timezone.utc)
    session = PourSession(
        user_id=user_id,
        session_name=session_name or default_session_name(start),
        date=start,
        companions=companions or [],
        companion_tags=companion_tags or [],
        location=location,
        tags=tags or [],
        notes=notes,
    )
    await session.insert()
    logger.info("Pour session created: id=%s user=%s", session.id, user_id)
    return session


async def find_session_for(
    user_id: PydanticObjectId, pour_date: datetime
) -> Optional[PourSession]:
    """Most recent session of the user started within the window before ``pour_date``."""
    pour_date = as_utc(pour_date)
    window_start = pour_date - timedelta(hours=settings.session_window_hours)
    return await PourSession.find(
        PourSession.user_id == user_id,
        PourSession.date >= window_start,
        PourSession.date <= pour_date,
    ).sort(-PourSession.date, -PourSession.id).first_or_none()


async def find_or_create_session(
    user_id: PydanticObjectId,
    pour_date: datetime,
    session_name: Optional[str] = None,
    location: Optional[PourLocation] = None,
) -> tuple[PourSession, bool]:
    """The session a pour at ``pour_date`` groups into, and whether it was created."""
    session = await find_session_for(user_id, pour_date)
    if session is not None:
        return session, False
    return await create_session(user_id, pour_date, session_name, location=location), True


async def resolve_session(
    user_id: PydanticObjectId,
    pour_date: datetime,
    session_id: Optional[PydanticObjectId] = None,
    new_session: bool = False,
    session_name: Optional[str] = None,
    location: Optional[PourLocation] = None,
) -> tuple[PourSession, bool]:
    """Pick the session a new pour attaches to.

    Returns:
        The session and whether it was created for this pour.
    """
    if session_id is not None:
        return await get_owned_session(session_id, user_id), False
    if new_session:
        return await create_session(user_id, pour_date, session_name, location=location), True

    return await find_or_create_session(user_id, pour_date, session_name, location=location)


async def merge_pour_details(session_id: PydanticObjectId, pour: Pour) -> None:
    """Carry a pour's tags and companions onto its session."""
    if not (pour.tags or pour.companions or pour.companion_tags):
        return

    async def attempt() -> None:
        session = await PourSession.get(session_id)
        if session is None:
            return
        session.tags = _merge(session.tags, pour.tags)
        session.companions = _merge(session.companions, pour.companions)
        session.companion_tags = _merge(session.companion_tags, pour.companion_tags)
        await session.save()

    await retry_on_conflict(attempt, settings.max_write_retries, "merge_pour_details")


async def recalculate(session_id: PydanticObjectId) -> Optional[PourSession]:
    """Recompute a session's totals from all pours referencing it.

    Returns None when the session no longer exists, or when it was empty and
    empty-session pruning is enabled.
    """

    async def attempt() -> Optional[PourSession]:
        session = await PourSession.get(session_id)
        if session is None:
            return None

        pours = await Pour.find(Pour.session_id == session_id).to_list()
        if not pours and settings.prune_empty_sessions:
            await session.delete()
            logger.info("Pruned empty pour session %s", session_id)
            return None

        apply_totals(session, compute_session_totals(pours))
        await session.save()
        return session

    return await retry_on_conflict(attempt, settings.max_write_retries, "recalculate_session")


def apply_totals(session: PourSession, totals: SessionTotals) -> PourSession:
    session.total_pours = totals.total_pours
    session.total_amount = totals.total_amount
    session.average_rating = totals.average_rating
    session.total_cost = totals.total_cost
    session.updated_at = datetime.now(timezone.utc)
    return session


async def current_session(user_id: PydanticObjectId) -> Optional[PourSession]:
    """The user's latest session that started today (UTC)."""
    start_of_day = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return await PourSession.find(
        PourSession.user_id == user_id,
        PourSession.date >= start_of_day,
    ).sort(-PourSession.date).first_or_none()
