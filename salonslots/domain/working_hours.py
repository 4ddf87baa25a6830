"""
Resolve the opening window of a calendar date from configured business hours.
"""

import logging
import re
from datetime import date, time
from typing import Mapping

from .models import DayHours, DaySchedule, weekday_name

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> time:
    """
    Parse a zero-padded 24h "HH:MM" string.

    Raises:
        ValueError: If the value is not a valid clock time
    """
    match = _HHMM.match(value or "")
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def resolve_working_hours(day: date, business_hours: Mapping[str, DaySchedule]) -> DayHours:
    """
    Return the open/closed status and window for the weekday of ``day``.

    A weekday missing from the mapping, or one whose times cannot be used,
    is reported as closed.
    """
    weekday = weekday_name(day)
    schedule = business_hours.get(weekday)

    if schedule is None or not schedule.open:
        return DayHours.closed()

    try:
        start = parse_hhmm(schedule.start)
        end = parse_hhmm(schedule.end)
    except ValueError as e:
        logger.warning("Ignoring unusable hours for %s: %s", weekday, e)
        return DayHours.closed()

    if start >= end:
        logger.warning("Ignoring hours for %s: %s is not before %s", weekday, schedule.start, schedule.end)
        return DayHours.closed()

    return DayHours(open=True, start=start, end=end)
