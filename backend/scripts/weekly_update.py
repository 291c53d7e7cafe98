#!/usr/bin/env python3
"""
Weekly job: build this week's activities and store them in the database.
Usage: python -m backend.scripts.weekly_update --mode multi_source
"""

import argparse
import asyncio
import logging
import sys
from sqlmodel import Session
from backend.app.db.session import engine, create_db_and_tables
from backend.app.core.config import settings
from backend.app.services.errors import ActivitiesError
from backend.app.services.weekly_update import MODES, WeeklyUpdateService, write_live_data

logger = logging.getLogger("backend.scripts.weekly_update")


async def weekly_update(mode: str, max_retries=None, output=None) -> int:
    """Run one refresh; returns the process exit code."""
    create_db_and_tables()

    with Session(engine) as session:
        service = WeeklyUpdateService.from_settings(settings, session)
        try:
            snapshot = await service.run(mode, max_retries=max_retries)
        except (ActivitiesError, ValueError) as e:
            logger.error(f"Error in weekly update job: {e}")
            return 1

        total = sum(len(category.get("events", [])) for category in snapshot.categories)
        logger.info(
            f"Successfully updated activities for week of {snapshot.week_start_date.isoformat()} "
            f"to {snapshot.week_end_date.isoformat()}"
        )
        logger.info(f"Added {total} events in {len(snapshot.categories)} categories")

        if output:
            write_live_data(snapshot, output)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Weekly activities update")
    parser.add_argument("--mode", choices=MODES, default="multi_source", help="Where activities come from")
    parser.add_argument("--max-retries", type=int, default=None, help="Generation retries after the first attempt")
    parser.add_argument("--output", default=None, help="Also write the result to this live-data JSON file")
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(weekly_update(args.mode, args.max_retries, args.output)))
