from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging
from typing import Collection, Optional

from config.settings import Config
from services.content_loader import ContentLoader, Day
from services.database import DayManager, ProgressManager
from services.unlock_policy import can_open_day

logger = logging.getLogger(__name__)


class OpenStatus(Enum):
    OPENED = "opened"
    LOCKED = "locked"
    NOT_FOUND = "not_found"


@dataclass
class OpenResult:
    status: OpenStatus
    day: Optional[Day] = None
    first_visit: bool = False


class ProgressTracker:
    """Opens days for users and reports which days they have opened."""

    def __init__(self, content: ContentLoader, progress_manager: ProgressManager, day_manager: DayManager):
        self.content = content
        self.progress_manager = progress_manager
        self.day_manager = day_manager

    async def _publish_date(self, day: Day) -> Optional[datetime]:
        # The editable copy in Mongo wins over the bundled catalog
        stored = await self.day_manager.get_publish_date(day.day_number)
        return stored if stored is not None else day.publish_date

    async def open_day(self, user_id: int, day_number: int, now: Optional[datetime] = None) -> OpenResult:
        """
        Check the unlock policy for a day and record the first visit.

        The catalog lookup happens first, so unknown day numbers never reach
        the policy. A record is only written after the policy allowed it.
        """
        day = self.content.get_day(day_number)
        if day is None or not 1 <= day_number <= Config.TOTAL_DAYS:
            logger.warning(f"User {user_id} requested unknown day {day_number}")
            return OpenResult(OpenStatus.NOT_FOUND)

        opened_days = await self.progress_manager.get_opened_days(user_id)
        publish_date = None
        if day_number != 1 and day_number not in opened_days and day_number - 1 not in opened_days:
            publish_date = await self._publish_date(day)

        if not can_open_day(day_number, opened_days, publish_date, now):
            logger.info(f"Day {day_number} still locked for user {user_id}")
            return OpenResult(OpenStatus.LOCKED, day)

        first_visit = False
        if day_number not in opened_days:
            first_visit = await self.progress_manager.create_record(user_id, day_number)

        return OpenResult(OpenStatus.OPENED, day, first_visit)

    async def get_progress_text(self, user_id: int) -> str:
        opened_days = await self.progress_manager.get_opened_days(user_id)
        return format_progress(opened_days)


def format_progress(opened_days: Collection[int], total_days: int = Config.TOTAL_DAYS) -> str:
    lines = ["📘 Dein Fortschritt:", ""]
    for day_number in range(1, total_days + 1):
        mark = "✅" if day_number in opened_days else "❌"
        lines.append(f"{mark} Tag {day_number}")
    return "\n".join(lines)
