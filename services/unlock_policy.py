from datetime import datetime, timezone
from typing import Collection, Optional


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def can_open_day(
    day_number: int,
    opened_days: Collection[int],
    publish_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> bool:
    """
    Decide whether a user may open a day.

    Args:
        day_number: The requested day. Range checks belong to the caller.
        opened_days: Day numbers the user already holds a progress record for.
        publish_date: When the day goes public for everyone, if scheduled.
        now: Current time, defaults to the wall clock in UTC.

    Returns:
        True if the day may be opened. Has no side effects.
    """
    if day_number == 1:
        return True

    if day_number in opened_days:
        return True

    if day_number - 1 in opened_days:
        return True

    if publish_date is not None:
        now = _as_utc(now or datetime.now(timezone.utc))
        return _as_utc(publish_date) <= now

    return False
