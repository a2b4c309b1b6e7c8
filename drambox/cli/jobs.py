"""Run DramBox batch jobs from the command line or a scheduler.

Commands:
    sweep     Attach orphaned pours to sessions
    ratings   Recompute community ratings
    stats     Show community rating coverage
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from drambox.config import configure_logging
from drambox.database import close_db, init_db
from drambox.models.user import User
from drambox.services.community_ratings import calculate_community_ratings, rating_stats
from drambox.services.orphan_sweep import sweep_orphaned_pours


async def run_sweep(email: Optional[str] = None) -> dict:
    """Sweep orphaned pours, optionally for a single user."""
    user_id = None
    if email:
        user = await User.find_one(User.email == email.lower())
        if not user:
            print(f"Error: No user with email '{email}'.")
            sys.exit(1)
        user_id = user.id

    report = await sweep_orphaned_pours(user_id)
    return report.model_dump(mode="json")


async def run_ratings() -> dict:
    """Recompute community ratings."""
    report = await calculate_community_ratings()
    return report.model_dump(mode="json")


async def run_stats() -> dict:
    """Report community rating coverage."""
    stats = await rating_stats()
    return stats.model_dump(mode="json")


async def _run(command) -> dict:
    await init_db()
    try:
        return await command
    finally:
        await close_db()


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Batch jobs for DramBox",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Job to run")

    sweep_parser = subparsers.add_parser("sweep", help="Attach orphaned pours to sessions")
    sweep_parser.add_argument("--user", "-u", help="Only sweep pours of the user with this email")

    subparsers.add_parser("ratings", help="Recompute community ratings")
    subparsers.add_parser("stats", help="Show community rating coverage")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    configure_logging()

    try:
        if args.command == "sweep":
            result = asyncio.run(_run(run_sweep(args.user)))
        elif args.command == "ratings":
            result = asyncio.run(_run(run_ratings()))
        else:
            result = asyncio.run(_run(run_stats()))
    except KeyboardInterrupt:
        print("\nAborted.")
        return 1

    print(json.dumps(result, indent=2))

    # Non-zero so schedulers notice pours that could not be repaired
    if args.command == "sweep" and result["alert"]:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
