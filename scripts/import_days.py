#!/usr/bin/env python
"""
Sync the content catalog into the MongoDB `days` collection.

Usage:
    python -m scripts.import_days [path/to/days.json]

Environment variables required:
    MONGODB_URI        (or DATABASE_URL / MONGO_URI)
    CONTENT_FILE       (optional, used when no path is given)
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from services.content_loader import ContentLoader
from services.database import DayManager, init_mongodb


logger = logging.getLogger(__name__)


async def import_days(content: ContentLoader, day_manager: DayManager) -> int:
    """Upsert every catalog day by day number. Returns the number of days written."""
    days = content.load_content()
    for day_number in sorted(days):
        await day_manager.upsert_day(days[day_number].to_document())
        logger.info(f"Imported day {day_number}")
    return len(days)


async def run(path: Optional[Path] = None) -> int:
    try:
        content = ContentLoader(content_file=path)
        db = await init_mongodb()
        count = await import_days(content, DayManager(db))
    except ValueError as e:
        logger.error(f"Import failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Import failed: {e}", exc_info=True)
        return 1

    logger.info(f"Imported {count} days")
    return 0


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    argv = sys.argv[1:] if argv is None else argv
    path = Path(argv[0]) if argv else None
    return asyncio.run(run(path))


if __name__ == "__main__":
    sys.exit(main())
