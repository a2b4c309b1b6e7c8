"""Compensating-step runner for multi-document writes.

MongoDB writes across the pour, bottle and session collections are not
atomic without a replica set, so each completed step registers an undo
action. If a later step fails the undo actions run newest first and the
original error is re-raised.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from drambox.services.exceptions import IntegrityDefect

logger = logging.getLogger(__name__)
jobs_logger = logging.getLogger("drambox.jobs")

Compensation = Callable[[], Awaitable[Any]]


class Saga:
    """Collects compensations for the steps of one operation.

    Usage::

        async with Saga("record_pour") as saga:
            await pour.insert()
            saga.on_rollback("delete pour", pour.delete)
            ...
    """

    def __init__(self, name: str, **context: Any) -> None:
        self.name = name
        self.context = context
        self._compensations: list[tuple[str, Compensation]] = []
        self.failed_compensations: list[str] = []

    def on_rollback(self, label: str, action: Compensation) -> None:
        """Register an undo action for a step that has just succeeded."""
        self._compensations.append((label, action))

    async def compensate(self) -> None:
        """Run every registered compensation in reverse order."""
        while self._compensations:
            label, action = self._compensations.pop()
            try:
                await action()
                logger.info("Saga %s: compensated '%s'", self.name, label)
            except Exception as e:
                self.failed_compensations.append(label)
                defect = IntegrityDefect(
                    f"Compensation '{label}' failed in {self.name}: {e}"
                )
                jobs_logger.error(
                    "INTEGRITY DEFECT: %s (context=%s)",
                    defect.message,
                    self.context,
                    exc_info=True,
                )

    async def __aenter__(self) -> "Saga":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            logger.warning(
                "Saga %s failed with %s, rolling back %d step(s)",
                self.name,
                exc_type.__name__,
                len(self._compensations),
            )
            await self.compensate()
        # Never suppress the original exception
        return False
