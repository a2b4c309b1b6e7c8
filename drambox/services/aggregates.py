"""Pure recompute functions for derived aggregates.

Session totals, bottle stats and community ratings are always rebuilt from
the canonical pour rows, never patched incrementally.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from pydantic import BaseModel


def round_rating(value: float, places: int = 1) -> float:
    """Round half up, so 7.25 becomes 7.3 rather than banker's 7.2."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def mean_rating(ratings: Iterable[float]) -> Optional[float]:
    """Rounded mean of the given ratings, or None when there are none."""
    values = list(ratings)
    if not values:
        return None
    return round_rating(sum(values) / len(values))


class SessionTotals(BaseModel):
    total_pours: int
    total_amount: float
    average_rating: Optional[float]
    total_cost: Optional[float]


def compute_session_totals(pours: Iterable[Any]) -> SessionTotals:
    """Totals for a session from every pour currently referencing it.

    ``average_rating`` only covers rated pours and ``total_cost`` only costed
    ones; each is None when its subset is empty.
    """
    pours = list(pours)
    costs = [p.cost for p in pours if p.cost is not None]
    return SessionTotals(
        total_pours=len(pours),
        total_amount=sum(p.amount for p in pours),
        average_rating=mean_rating(p.rating for p in pours if p.rating is not None),
        total_cost=sum(costs) if costs else None,
    )


class BottleStats(BaseModel):
    total_pours: int = 0
    average_rating: Optional[float] = None
    last_pour_date: Optional[datetime] = None


def bottle_stats_from_group(row: Optional[dict]) -> BottleStats:
    """Shape a ``$group`` result row (count, avg, last) into bottle stats."""
    if not row:
        return BottleStats()
    avg = row.get("avg_rating")
    return BottleStats(
        total_pours=row.get("total_pours", 0),
        average_rating=round_rating(avg) if avg is not None else None,
        last_pour_date=row.get("last_pour_date"),
    )
