"""
Candidate slot generation.

Pure domain logic: the same window, duration, buffer and granularity always
yield the same sequence.
"""

from typing import List

from .models import DayHours, TimeSlot, minutes_of_day

DEFAULT_GRANULARITY_MINUTES = 15


def validate_granularity(granularity_minutes: int) -> int:
    """
    Ensure the step size rolls over cleanly at full hours.

    Raises:
        ValueError: If the granularity is not positive, or neither divides
            nor is a multiple of 60
    """
    if granularity_minutes <= 0:
        raise ValueError(f"Granularity must be positive, got {granularity_minutes}")
    if 60 % granularity_minutes != 0 and granularity_minutes % 60 != 0:
        raise ValueError(
            f"Granularity must divide 60 or be a multiple of 60, got {granularity_minutes}"
        )
    return granularity_minutes


def generate_slots(
    window: DayHours,
    duration_minutes: int,
    buffer_minutes: int,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> List[TimeSlot]:
    """
    Produce the ordered candidate start times inside an opening window.

    Starts at ``window.start`` and steps by ``granularity_minutes``. A start
    is kept only while ``start + duration + buffer`` is at or before
    ``window.end``.

    Example:
        Window 09:00 - 18:00, duration 60, buffer 15, granularity 15
        -> 09:00, 09:15, ..., 16:45 (16:45 + 75 min = 18:00)

    Returns:
        List of TimeSlot objects, all available and without staff
    """
    validate_granularity(granularity_minutes)
    if duration_minutes <= 0:
        raise ValueError(f"Duration must be positive, got {duration_minutes}")
    if buffer_minutes < 0:
        raise ValueError(f"Buffer must not be negative, got {buffer_minutes}")

    if window.length_minutes() <= 0:
        return []

    total_duration = duration_minutes + buffer_minutes
    window_start = minutes_of_day(window.start)
    window_end = minutes_of_day(window.end)

    slots: List[TimeSlot] = []
    current = window_start

    while current + total_duration <= window_end:
        hour, minute = divmod(current, 60)
        slots.append(TimeSlot(hour=hour, minute=minute))
        current += granularity_minutes

    return slots
