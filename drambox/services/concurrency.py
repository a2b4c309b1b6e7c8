"""Optimistic-concurrency retry helper for revision-checked documents."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from beanie.exceptions import RevisionIdWasChanged

from drambox.services.exceptions import ConcurrencyConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_on_conflict(
    operation: Callable[[], Awaitable[T]],
    attempts: int,
    label: str = "write",
) -> T:
    """Run ``operation`` again from a fresh read when a revision check fails.

    The operation must re-load whatever documents it writes on every call.

    Raises:
        ConcurrencyConflict: If every attempt lost the race.
    """
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except RevisionIdWasChanged:
            logger.info("Revision conflict in %s (attempt %d/%d)", label, attempt, attempts)

    raise ConcurrencyConflict(
        f"{label} conflicted with a concurrent update; please retry"
    )
