"""
Effective reminder status.

The stored ``status`` column is only refreshed by reconciliation, so every read
path projects it through ``compute_effective_status`` with the current time.
"""
import re
from datetime import datetime
from typing import Optional

UPCOMING = "upcoming"
COMPLETED = "completed"
OVERDUE = "overdue"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _leading_int(text: str) -> Optional[int]:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def combine_date_and_time(date: datetime, time: Optional[str]) -> datetime:
    """
    Apply an "HH:MM" or "HH:MM:SS" time of day to ``date``.

    Each part is read from its leading digits, so "10:30 AM" is 10:30 and
    "08:15:30.500" is 08:15:30. Missing hours or minutes leave ``date`` unchanged,
    as does an out-of-range value.
    """
    if not time or not isinstance(time, str):
        return date
    parts = time.split(":")
    if len(parts) < 2:
        return date
    hours = _leading_int(parts[0])
    minutes = _leading_int(parts[1])
    if hours is None or minutes is None:
        return date
    seconds = (_leading_int(parts[2]) if len(parts) > 2 else None) or 0
    try:
        return date.replace(hour=hours, minute=minutes, second=seconds, microsecond=0)
    except ValueError:
        return date


def compute_effective_status(
    stored_status: Optional[str],
    date: Optional[datetime],
    time: Optional[str],
    now: datetime,
) -> str:
    if stored_status == COMPLETED:
        return COMPLETED
    fallback = stored_status or UPCOMING
    if date is None:
        return fallback
    if combine_date_and_time(date, time) < now:
        return OVERDUE
    return fallback


def effective_status_of(reminder, now: datetime) -> str:
    return compute_effective_status(reminder.status, reminder.date, reminder.time, now)
