"""Repair of pours that were left without a session.

Pours are normally inserted with their session already attached, so an
orphan only appears after an interrupted write or from legacy data. The
sweep attaches each stale orphan to a session using the normal grouping
rule and recomputes that session. Anything still orphaned afterwards is an
integrity defect and is reported as an alert.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from beanie import PydanticObjectId
from beanie.operators import Set

from drambox.config import settings
from drambox.models import Pour
from drambox.schemas.jobs import OrphanSweepReport
from drambox.services.exceptions import IntegrityDefect
from drambox.services.pour_sessions import find_or_create_session, recalculate

logger = logging.getLogger(__name__)
jobs_logger = logging.getLogger("drambox.jobs")


def _orphan_filter(user_id: Optional[PydanticObjectId]) -> list:
    conditions: list = [Pour.session_id == None]  # noqa: E711
    if user_id is not None:
        conditions.append(Pour.user_id == user_id)
    return conditions


async def attach_orphan(pour: Pour) -> bool:
    """Attach one orphaned pour to a session.

    The write only applies while the pour is still orphaned, so concurrent
    sweeps cannot assign it twice. Returns False if another writer got there
    first, dropping the session if it was created for nothing.
    """
    session, created = await find_or_create_session(pour.user_id, pour.date, location=pour.location)
    result = await Pour.find_one(Pour.id == pour.id, Pour.session_id == None).update(  # noqa: E711
        Set({Pour.session_id: session.id, Pour.updated_at: datetime.now(timezone.utc)})
    )
    if result is None or getattr(result, "modified_count", 0) == 0:
        logger.info("Pour %s was attached concurrently; skipping", pour.id)
        if created and await Pour.find(Pour.session_id == session.id).count() == 0:
            await session.delete()
        return False
    await recalculate(session.id)
    return True


async def sweep_orphaned_pours(user_id: Optional[PydanticObjectId] = None) -> OrphanSweepReport:
    """Find and repair pours with no session, oldest first.

    Pours younger than the grace window may still be mid-write and are left
    alone. Per-pour failures are counted and the sweep carries on.
    """
    conditions = _orphan_filter(user_id)
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=settings.orphan_grace_minutes)

    found = await Pour.find(*conditions).count()
    stale = await Pour.find(*conditions, Pour.created_at <= cutoff).sort(+Pour.date, +Pour.id).to_list()

    fixed = 0
    failed = 0
    for pour in stale:
        try:
            if await attach_orphan(pour):
                fixed += 1
        except Exception:
            failed += 1
            jobs_logger.exception("Failed to repair orphaned pour %s", pour.id)

    remaining = await Pour.find(*conditions, Pour.created_at <= cutoff).count()
    report = OrphanSweepReport(
        found=found,
        fixed=fixed,
        failed=failed,
        remaining=remaining,
        alert=remaining > 0,
        timestamp=datetime.now(timezone.utc),
    )

    if remaining > 0:
        defect = IntegrityDefect(f"{remaining} pour(s) still have no session after repair")
        jobs_logger.error("INTEGRITY DEFECT: %s (report=%s)", defect.message, report.model_dump())
    elif found:
        jobs_logger.info("Orphan sweep: found=%d fixed=%d failed=%d", found, fixed, failed)
    else:
        jobs_logger.debug("Orphan sweep: no orphaned pours")

    return report
