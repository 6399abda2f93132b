"""
Signage Cache - Dayparting
Decide whether an item's schedule window is open
"""

from datetime import datetime
from typing import Optional


def parse_time(value: Optional[str]) -> Optional[int]:
    """
    Parse "HH:MM" into minutes since midnight

    Returns:
        Minutes, or None when value is empty or malformed
    """
    if not value:
        return None
    try:
        hours, minutes = value.split(":")
        return int(hours) * 60 + int(minutes)
    except ValueError:
        return None


def is_within_schedule(
    start_time: Optional[str],
    end_time: Optional[str],
    days_of_week: Optional[str],
    now: Optional[datetime] = None,
) -> bool:
    """
    Check a dayparting window against `now`

    Args:
        start_time: "HH:MM" the window opens (inclusive)
        end_time: "HH:MM" the window closes (inclusive)
        days_of_week: Comma-separated ISO weekdays, 1 = Monday
        now: Moment to check, defaults to local time

    Returns:
        True when no rule excludes `now`. A window whose end is before its
        start wraps past midnight (22:00 - 06:00).
    """
    if not start_time and not end_time and not days_of_week:
        return True

    now = now or datetime.now()

    if days_of_week:
        allowed = {int(day) for day in days_of_week.split(",") if day.strip().isdigit()}
        if now.isoweekday() not in allowed:
            return False

    current = now.hour * 60 + now.minute
    start = parse_time(start_time)
    end = parse_time(end_time)

    if start is not None and end is not None:
        if end >= start:
            return start <= current <= end
        return current >= start or current <= end
    if start is not None:
        return current >= start
    if end is not None:
        return current <= end
    return True
