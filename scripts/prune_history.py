#!/usr/bin/env python3
"""
Retention sweep: delete `selection_history` rows older than N days.
Usage:
    python -m scripts.prune_history            # HISTORY_RETENTION_DAYS (365)
    python -m scripts.prune_history --days 90
"""
import argparse
import asyncio
import logging

from config import settings
from services.db import session_scope
from services.stores import SqlHistoryStore


async def prune_history(days: int) -> int:
    async with session_scope() as db:
        deleted = await SqlHistoryStore(db).delete_older_than(days)
    print(f"✓ removed {deleted} selection history rows older than {days} days")
    return deleted


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument(
        "--days",
        type=int,
        default=settings.history_retention_days,
        help="keep entries newer than this many days",
    )
    args = ap.parse_args()
    if args.days < 1:
        ap.error("--days must be at least 1")

    logging.basicConfig(level=settings.log_level.upper())
    asyncio.run(prune_history(args.days))


if __name__ == "__main__":
    main()
