"""Community rating aggregation across all users' pours.

A pure recompute: every rated pour is grouped by the catalog item of its
bottle, the mean is rounded to one decimal, and the results are bulk-written.
Catalog items with no rated pours have their rating removed.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from pymongo import UpdateOne
from pymongo.errors import BulkWriteError, PyMongoError

from drambox.models import Bottle, CatalogItem, Pour
from drambox.schemas.jobs import RatingRunReport, RatingStats
from drambox.services.aggregates import round_rating

jobs_logger = logging.getLogger("drambox.jobs")


def rating_pipeline() -> list[dict[str, Any]]:
    """Aggregation grouping rated pours by catalog item."""
    return [
        {"$match": {"rating": {"$exists": True, "$ne": None}}},
        {
            "$lookup": {
                "from": Bottle.get_collection_name(),
                "localField": "bottle_id",
                "foreignField": "_id",
                "as": "bottle",
            }
        },
        {"$unwind": "$bottle"},
        {
            "$group": {
                "_id": "$bottle.catalog_item_id",
                "average_rating": {"$avg": "$rating"},
                "count": {"$sum": 1},
            }
        },
    ]


def build_rating_updates(rows: list[dict[str, Any]], now: datetime) -> list[UpdateOne]:
    """Turn grouped rows into one ``$set`` per catalog item."""
    updates = []
    for row in rows:
        if row.get("_id") is None:
            continue
        updates.append(
            UpdateOne(
                {"_id": row["_id"]},
                {
                    "$set": {
                        "community_rating": round_rating(row["average_rating"]),
                        "community_rating_count": row["count"],
                        "last_calculated": now,
                    }
                },
            )
        )
    return updates


async def calculate_community_ratings() -> RatingRunReport:
    """Recompute every catalog item's community rating and count."""
    started = time.monotonic()
    now = datetime.now(timezone.utc)

    rows = await Pour.aggregate(rating_pipeline()).to_list()
    updates = build_rating_updates(rows, now)
    collection = CatalogItem.get_pymongo_collection()

    updated = 0
    failed = 0
    if updates:
        try:
            result = await collection.bulk_write(updates, ordered=False)
            updated = result.matched_count
        except BulkWriteError as e:
            details = e.details or {}
            updated = details.get("nMatched", 0)
            failed = len(details.get("writeErrors", []))
            jobs_logger.error(
                "Community rating bulk write had %d error(s): %s",
                failed,
                details.get("writeErrors", [])[:5],
            )

    rated_ids = [row["_id"] for row in rows if row.get("_id") is not None]
    cleared = 0
    try:
        clear = await collection.update_many(
            {
                "_id": {"$nin": rated_ids},
                "$or": [
                    {"community_rating": {"$ne": None}},
                    {"community_rating_count": {"$ne": 0}},
                ],
            },
            {
                "$unset": {"community_rating": ""},
                "$set": {"community_rating_count": 0, "last_calculated": now},
            },
        )
        cleared = clear.modified_count
    except PyMongoError:
        failed += 1
        jobs_logger.exception("Failed to clear stale community ratings")

    report = RatingRunReport(
        bottles_updated=updated,
        bottles_cleared=cleared,
        total_processed=len(rows),
        failed=failed,
        execution_time_ms=int((time.monotonic() - started) * 1000),
        timestamp=now,
    )
    jobs_logger.info(
        "Community ratings: updated=%d cleared=%d processed=%d failed=%d in %dms",
        report.bottles_updated,
        report.bottles_cleared,
        report.total_processed,
        report.failed,
        report.execution_time_ms,
    )
    return report


async def rating_stats() -> RatingStats:
    """Coverage of community ratings for monitoring."""
    total = await CatalogItem.find_all().count()
    rated = await CatalogItem.find(CatalogItem.community_rating_count > 0).count()
    rated_pours = await Pour.find({"rating": {"$exists": True, "$ne": None}}).count()
    latest = await CatalogItem.find(CatalogItem.last_calculated != None).sort(  # noqa: E711
        -CatalogItem.last_calculated
    ).first_or_none()

    return RatingStats(
        total_items=total,
        rated_items=rated,
        unrated_items=total - rated,
        coverage_percent=round(rated / total * 100, 1) if total else 0.0,
        rated_pours=rated_pours,
        last_calculated=latest.last_calculated if latest else None,
    )
